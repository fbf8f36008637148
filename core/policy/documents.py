"""Build the IAM documents attached to the Service Catalog launch role."""

from __future__ import annotations

from typing import Iterable

from core.constants import SERVICE_CATALOG_PRINCIPAL
from core.models import PolicyDoc, PolicyStatement


def launch_role_trust_policy(account: str, region: str) -> PolicyDoc:
    """Let Service Catalog assume the role, only on behalf of this account and region."""
    statement = PolicyStatement(  # type: ignore[arg-type]
        sid="AllowServiceCatalogAssume",
        principal={"Service": SERVICE_CATALOG_PRINCIPAL},
        actions=["sts:AssumeRole"],
        conditions={
            "StringEquals": {"aws:SourceAccount": account},
            "ArnLike": {"aws:SourceArn": f"arn:aws:servicecatalog:{region}:{account}:*"},
        },
    )
    return PolicyDoc(statements=[statement])  # type: ignore[arg-type]


def launch_role_inline_policy(actions: Iterable[str], bucket_arn: str, object_key: str) -> PolicyDoc:
    wildcard_actions = sorted(set(actions))
    statements = [
        PolicyStatement(  # type: ignore[arg-type]
            sid="CatalogProvisioning",
            actions=wildcard_actions,
            resources=["*"],
        ),
        PolicyStatement(  # type: ignore[arg-type]
            sid="ReadProductTemplate",
            actions=["s3:GetObject"],
            resources=[f"{bucket_arn}/{object_key.lstrip('/')}"],
        ),
    ]
    return validate_policy(PolicyDoc(statements=statements))  # type: ignore[arg-type]


def validate_policy(policy: PolicyDoc) -> PolicyDoc:
    if not policy.statements:
        raise ValueError("Policy document must contain at least one statement")
    sids: set[str] = set()
    for index, statement in enumerate(policy.statements):
        if not statement.actions:
            raise ValueError(f"Statement {statement.sid or index} has no actions")
        if statement.sid:
            if statement.sid in sids:
                raise ValueError(f"Duplicate statement id: {statement.sid}")
            sids.add(statement.sid)
    return policy


__all__ = ["launch_role_inline_policy", "launch_role_trust_policy", "validate_policy"]
