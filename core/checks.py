"""Static checks over a synthesized CloudFormation template."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from core.models import CatalogDefinition
from core.template import TemplateArtifact

logger = logging.getLogger(__name__)

BUCKET_TYPE = "AWS::S3::Bucket"
ROLE_TYPE = "AWS::IAM::Role"
ROLE_POLICY_TYPE = "AWS::IAM::Policy"
PRODUCT_TYPE = "AWS::ServiceCatalog::CloudFormationProduct"
CONSTRAINT_TYPE = "AWS::ServiceCatalog::LaunchRoleConstraint"
DEPLOYMENT_TYPE = "Custom::CDKBucketDeployment"

ACCESS_BLOCK_FLAGS = ("BlockPublicAcls", "BlockPublicPolicy", "IgnorePublicAcls", "RestrictPublicBuckets")


@dataclass(slots=True)
class CheckResult:
    name: str
    passed: bool
    detail: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {"check": self.name, "passed": self.passed, "detail": self.detail}


def _resources(template: dict[str, Any], resource_type: str) -> dict[str, dict[str, Any]]:
    return {
        logical_id: resource
        for logical_id, resource in (template.get("Resources") or {}).items()
        if resource.get("Type") == resource_type
    }


def _depends_on(resource: dict[str, Any]) -> set[str]:
    value = resource.get("DependsOn") or []
    if isinstance(value, str):
        return {value}
    return set(value)


def check_public_access_block(template: dict[str, Any]) -> CheckResult:
    name = "public-access-block"
    buckets = _resources(template, BUCKET_TYPE)
    if not buckets:
        return CheckResult(name, False, "no S3 bucket declared")
    for logical_id, bucket in buckets.items():
        config = (bucket.get("Properties") or {}).get("PublicAccessBlockConfiguration") or {}
        disabled = [flag for flag in ACCESS_BLOCK_FLAGS if config.get(flag) is not True]
        if disabled:
            return CheckResult(name, False, f"{logical_id}: {', '.join(disabled)} not true")
    return CheckResult(name, True, f"{len(buckets)} bucket(s) fully blocked")


def check_constraint_ordering(template: dict[str, Any], managed_policy_arns: Iterable[str] = ()) -> CheckResult:
    name = "constraint-ordering"
    constraints = _resources(template, CONSTRAINT_TYPE)
    if not constraints:
        return CheckResult(name, False, "no launch constraint declared")
    roles = _resources(template, ROLE_TYPE)
    policies = _resources(template, ROLE_POLICY_TYPE)
    expected = set(managed_policy_arns)
    required: set[str] = set()
    for logical_id, constraint in constraints.items():
        role_id = _launch_role_id(constraint)
        if role_id not in roles:
            return CheckResult(name, False, f"{logical_id} does not reference a role declared in this template")
        attached = set((roles[role_id].get("Properties") or {}).get("ManagedPolicyArns") or [])
        if not expected <= attached:
            return CheckResult(name, False, f"{role_id} is missing {', '.join(sorted(expected - attached))}")
        required = {role_id} | {
            policy_id
            for policy_id, policy in policies.items()
            if {"Ref": role_id} in ((policy.get("Properties") or {}).get("Roles") or [])
        }
        if len(required) < 2:
            return CheckResult(name, False, f"{role_id} has no inline policy attached")
        missing = sorted(required - _depends_on(constraint))
        if missing:
            return CheckResult(name, False, f"{logical_id} does not depend on {', '.join(missing)}")
    return CheckResult(name, True, f"constraint waits for {len(required)} IAM resource(s)")


def _launch_role_id(constraint: dict[str, Any]) -> Optional[str]:
    role_arn = (constraint.get("Properties") or {}).get("RoleArn")
    if isinstance(role_arn, dict) and "Fn::GetAtt" in role_arn:
        return role_arn["Fn::GetAtt"][0]
    return None


def _artifact_url(product: dict[str, Any]) -> Any:
    artifacts = (product.get("Properties") or {}).get("ProvisioningArtifactParameters") or []
    if len(artifacts) != 1:
        return None
    return (artifacts[0].get("Info") or {}).get("LoadTemplateFromURL")


def check_artifact_url(template: dict[str, Any], object_key: str, bucket_name: Optional[str] = None, region: Optional[str] = None) -> CheckResult:
    """The URL must be ``https://<bucket regional domain>/<object key>``.

    Accepts either a literal URL or the ``Fn::Join`` CDK renders for a
    ``RegionalDomainName`` attribute of a bucket declared in the same template.
    """
    name = "artifact-url"
    products = _resources(template, PRODUCT_TYPE)
    if not products:
        return CheckResult(name, False, "no product declared")
    buckets = _resources(template, BUCKET_TYPE)
    suffix = f"/{object_key.lstrip('/')}"

    for logical_id, product in products.items():
        url = _artifact_url(product)
        if isinstance(url, str):
            if bucket_name and region:
                expected = f"https://{bucket_name}.s3.{region}.amazonaws.com{suffix}"
                if url != expected:
                    return CheckResult(name, False, f"{logical_id}: {url} != {expected}")
            elif not (url.startswith("https://") and url.endswith(suffix)):
                return CheckResult(name, False, f"{logical_id}: unexpected URL {url}")
            continue

        join = (url or {}).get("Fn::Join") if isinstance(url, dict) else None
        if not join or join[0] != "":
            return CheckResult(name, False, f"{logical_id}: artifact URL is not a single string")
        parts = join[1]
        if len(parts) != 3 or parts[0] != "https://" or parts[2] != suffix:
            return CheckResult(name, False, f"{logical_id}: unexpected URL parts {parts!r}")
        attribute = parts[1].get("Fn::GetAtt") if isinstance(parts[1], dict) else None
        if not attribute or attribute[1] != "RegionalDomainName" or attribute[0] not in buckets:
            return CheckResult(name, False, f"{logical_id}: URL host is not a bucket regional domain")
        if not any(resource.get("Type") == DEPLOYMENT_TYPE for resource in _dependencies(template, product)):
            return CheckResult(name, False, f"{logical_id} does not wait for the template upload")
    return CheckResult(name, True, f"artifact URL ends with {suffix}")


def _dependencies(template: dict[str, Any], resource: dict[str, Any]) -> list[dict[str, Any]]:
    resources = template.get("Resources") or {}
    return [resources[dep] for dep in _depends_on(resource) if dep in resources]


def check_template_hash(template: dict[str, Any], artifact: TemplateArtifact) -> CheckResult:
    name = "template-hash"
    for logical_id, product in _resources(template, PRODUCT_TYPE).items():
        recorded = (product.get("Metadata") or {}).get("TemplateSha256")
        if recorded != artifact.sha256:
            return CheckResult(name, False, f"{logical_id} records {recorded}, file is {artifact.sha256}")
    return CheckResult(name, True, artifact.sha256)


def canonical(template: dict[str, Any]) -> str:
    return json.dumps(template, sort_keys=True, separators=(",", ":"))


def check_idempotent(first: dict[str, Any], second: dict[str, Any]) -> CheckResult:
    name = "idempotent"
    if canonical(first) == canonical(second):
        return CheckResult(name, True, "repeated synthesis produces no changes")
    changed = sorted(
        logical_id
        for logical_id in set(first.get("Resources", {})) | set(second.get("Resources", {}))
        if first.get("Resources", {}).get(logical_id) != second.get("Resources", {}).get(logical_id)
    )
    return CheckResult(name, False, f"changed resources: {', '.join(changed) or 'template metadata'}")


def check_backend(definition: CatalogDefinition) -> CheckResult:
    name = "backend"
    backend = definition.backend
    problems = []
    if not backend.encrypt:
        problems.append("encryption disabled")
    if not backend.use_lockfile:
        problems.append("state locking disabled")
    if problems:
        return CheckResult(name, False, f"s3://{backend.bucket}/{backend.key}: {', '.join(problems)}")
    return CheckResult(name, True, f"s3://{backend.bucket}/{backend.key}")


def run_checks(
    definition: CatalogDefinition,
    artifact: TemplateArtifact,
    template: dict[str, Any],
    rerendered: dict[str, Any],
    bucket_name: Optional[str] = None,
) -> list[CheckResult]:
    results = [
        check_backend(definition),
        check_public_access_block(template),
        check_constraint_ordering(template, definition.launch_role.managed_policy_arns),
        check_artifact_url(template, artifact.object_key, bucket_name, definition.region if bucket_name else None),
        check_template_hash(template, artifact),
        check_idempotent(template, rerendered),
    ]
    for result in results:
        logger.info("check %s: %s %s", result.name, "ok" if result.passed else "FAILED", result.detail)
    return results


__all__ = [
    "CheckResult",
    "canonical",
    "check_artifact_url",
    "check_backend",
    "check_constraint_ordering",
    "check_idempotent",
    "check_public_access_block",
    "check_template_hash",
    "run_checks",
]
