"""AWS CDK app synthesizing the Service Catalog stack from a YAML definition."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from aws_cdk import App, DefaultStackSynthesizer, Environment

from core.models import CatalogDefinition, load_definition
from core.template import TemplateArtifact
from infra.cdk.stack import ServiceCatalogStack

DEFAULT_DEFINITION = Path("catalog.yml")

logger = logging.getLogger(__name__)


def build_stack(app: App, definition: CatalogDefinition, artifact: TemplateArtifact) -> ServiceCatalogStack:
    backend = definition.backend
    synthesizer = DefaultStackSynthesizer(
        file_assets_bucket_name=backend.bucket,
        bucket_prefix=backend.asset_prefix,
    )
    return ServiceCatalogStack(
        app,
        backend.stack_name,
        definition=definition,
        artifact=artifact,
        env=Environment(account=definition.account, region=definition.region),
        synthesizer=synthesizer,
        description=f"Service Catalog portfolio {definition.portfolio.name}",
    )


def load_artifact(definition: CatalogDefinition) -> TemplateArtifact:
    return TemplateArtifact.load(definition.template.source, definition.template.object_key)


def render_template(definition: CatalogDefinition, artifact: TemplateArtifact | None = None) -> dict[str, Any]:
    """Synthesize into a throwaway assembly and return the stack's template."""
    artifact = artifact or load_artifact(definition)
    app = App(analytics_reporting=False)
    stack = build_stack(app, definition, artifact)
    assembly = app.synth()
    logger.debug("Synthesized %s into %s", stack.stack_name, assembly.directory)
    return assembly.get_stack_by_name(stack.stack_name).template


def build_app(definition_path: Path | None = None, outdir: str | None = None) -> App:
    app = App(outdir=outdir)
    if definition_path is None:
        definition_path = Path(app.node.try_get_context("definition") or DEFAULT_DEFINITION)
    definition = load_definition(definition_path)
    build_stack(app, definition, load_artifact(definition))
    return app


def main() -> None:
    app = build_app()
    app.synth()


if __name__ == "__main__":
    main()
