"""Command line interface for the Service Catalog launch infrastructure."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cli import config, output
from core.models import CatalogDefinition, load_definition
from core.naming import regional_domain_name, resolve_bucket_name, template_url
from core.outputs import StackOutputs
from core.policy.review import PolicyReview
from core.template import TemplateArtifact

logger = logging.getLogger("svccat")

FORMATS = ["json", "md", "table"]


class CLIError(Exception):
    def __init__(self, message: str, exit_code: int = 2) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def configure_logging(log_level: str) -> None:
    numeric_level = getattr(logging, log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="svccat", description="Service Catalog launch infrastructure toolkit")
    parser.add_argument("--config", type=Path, default=Path("svccat.yml"), help="Path to CLI configuration file")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # synth -----------------------------------------------------------------
    synth_cmd = subparsers.add_parser("synth", help="Render the CloudFormation template")
    synth_cmd.add_argument("--definition", type=Path)
    synth_cmd.add_argument("--output", type=Path)
    synth_cmd.add_argument("--format", choices=["json", "yaml"], help="Output format override")

    # validate --------------------------------------------------------------
    validate_cmd = subparsers.add_parser("validate", help="Run static checks against the synthesized template")
    validate_cmd.add_argument("--definition", type=Path)
    validate_cmd.add_argument("--output", type=Path)
    validate_cmd.add_argument("--format", choices=FORMATS, help="Output format override")

    # review ----------------------------------------------------------------
    review_cmd = subparsers.add_parser("review", help="Report broad launch role permissions")
    review_cmd.add_argument("--definition", type=Path)
    review_cmd.add_argument("--output", type=Path)
    review_cmd.add_argument("--format", choices=[*FORMATS, "sarif"], help="Output format override")

    # describe --------------------------------------------------------------
    describe_cmd = subparsers.add_parser("describe", help="Show resolved names, URLs and hashes")
    describe_cmd.add_argument("--definition", type=Path)
    describe_cmd.add_argument("--output", type=Path)
    describe_cmd.add_argument("--format", choices=FORMATS, help="Output format override")

    # outputs ---------------------------------------------------------------
    outputs_cmd = subparsers.add_parser("outputs", help="Fetch portfolio id, product id and role ARN from the stack")
    outputs_cmd.add_argument("--definition", type=Path)
    outputs_cmd.add_argument("--stack-name", help="Defaults to the stack derived from the backend key")
    outputs_cmd.add_argument("--region")
    outputs_cmd.add_argument("--output", type=Path)
    outputs_cmd.add_argument("--format", choices=FORMATS, help="Output format override")

    return parser


def app(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = config.load_settings(args.config).merge_cli(
            format_override=getattr(args, "format", None),
            definition=getattr(args, "definition", None),
            log_level=args.log_level,
        )
        configure_logging(settings.log_level)

        if args.command == "synth":
            return _cmd_synth(args, settings)
        if args.command == "validate":
            return _cmd_validate(args, settings)
        if args.command == "review":
            return _cmd_review(args, settings)
        if args.command == "describe":
            return _cmd_describe(args, settings)
        if args.command == "outputs":
            return _cmd_outputs(args, settings)
    except CLIError as exc:
        print(exc, file=sys.stderr)
        return exc.exit_code
    except (FileNotFoundError, ValidationError, ValueError, LookupError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # pragma: no cover - unexpected errors bubble up
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


# ---------------------------------------------------------------------------
# Command implementations


def _cmd_synth(args: argparse.Namespace, settings: config.Settings) -> int:
    from infra.cdk.app import render_template

    definition = _load(settings)
    fmt = settings.default_format if settings.default_format in {"json", "yaml"} else "json"
    output.emit(render_template(definition), fmt, output_path=args.output)
    return 0


def _cmd_validate(args: argparse.Namespace, settings: config.Settings) -> int:
    from core.checks import run_checks
    from infra.cdk.app import render_template

    definition = _load(settings)
    artifact = _artifact(definition)
    first = render_template(definition, artifact)
    second = render_template(definition, _artifact(definition))
    results = run_checks(definition, artifact, first, second)

    output.emit([result.as_dict() for result in results], settings.default_format, output_path=args.output)
    failed = [result.name for result in results if not result.passed]
    if failed:
        print(f"Checks failed: {', '.join(failed)}", file=sys.stderr)
        return 3
    return 0


def _cmd_review(args: argparse.Namespace, settings: config.Settings) -> int:
    definition = _load(settings)
    review = PolicyReview(definition)
    findings = [finding.as_dict() for finding in review.findings()]
    if settings.default_format in {"sarif", "json"}:
        payload: Any = {
            "role": definition.launch_role.name,
            "summary": review.summary(),
            "findings": findings,
        }
    else:
        payload = findings
    output.emit(payload, settings.default_format, output_path=args.output)
    return 0


def _cmd_describe(args: argparse.Namespace, settings: config.Settings) -> int:
    definition = _load(settings)
    artifact = _artifact(definition)
    bucket = resolve_bucket_name(definition.bucket)
    payload = {
        "stack_name": definition.backend.stack_name,
        "state": f"s3://{definition.backend.bucket}/{definition.backend.key}",
        "region": definition.region,
        "bucket": bucket,
        "bucket_regional_domain": regional_domain_name(bucket, definition.region),
        "template_key": artifact.object_key,
        "template_url": template_url(bucket, definition.region, artifact.object_key),
        "template_sha256": artifact.sha256,
        "template_etag": artifact.md5,
        "template_description": artifact.description,
        "template_resources": len(artifact.resources),
        "launch_role": definition.launch_role.name,
        "portfolio": definition.portfolio.name,
        "product": f"{definition.product.name} ({definition.product.artifact.name})",
        "principal_arn": definition.principal_arn,
    }
    output.emit(payload, settings.default_format, output_path=args.output)
    return 0


def _cmd_outputs(args: argparse.Namespace, settings: config.Settings) -> int:
    stack_name = args.stack_name or settings.stack_name
    region = args.region
    if not stack_name:
        definition = _load(settings)
        stack_name = definition.backend.stack_name
        region = region or definition.region
    outputs = StackOutputs.fetch(stack_name, region=region)
    output.emit(outputs.as_dict(), settings.default_format, output_path=args.output)
    return 0


# ---------------------------------------------------------------------------
# Helpers


def _load(settings: config.Settings) -> CatalogDefinition:
    if not settings.definition.exists():
        raise CLIError(f"Definition file not found: {settings.definition}")
    definition = load_definition(settings.definition)
    logger.info("Loaded definition %s (stack %s)", settings.definition, definition.backend.stack_name)
    return definition


def _artifact(definition: CatalogDefinition) -> TemplateArtifact:
    source = definition.template.source
    if not source.exists():
        raise CLIError(f"Template file not found: {source}")
    return TemplateArtifact.load(source, definition.template.object_key)


def main() -> None:
    raise SystemExit(app())


if __name__ == "__main__":
    main()
