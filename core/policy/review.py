"""Report broad or redundant permissions granted to the launch role.

Findings are informational only. The definition is never rewritten: whether
the wildcard inline grants stay next to ``AdministratorAccess`` is an operator
decision.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from core.constants import ADMINISTRATOR_ACCESS_ARN, HIGH_RISK_SERVICES
from core.models import CatalogDefinition, PolicyDoc
from core.naming import resolve_bucket_name
from core.policy.documents import launch_role_inline_policy


@dataclass(slots=True)
class Finding:
    rule_id: str
    severity: str
    action: str
    message: str

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["ruleId"] = payload.pop("rule_id")
        return payload


class PolicyReview:
    """Inspect the launch role's attachments for over-permissive grants."""

    def __init__(self, definition: CatalogDefinition) -> None:
        self.definition = definition

    def inline_policy(self) -> PolicyDoc:
        bucket = resolve_bucket_name(self.definition.bucket)
        return launch_role_inline_policy(
            self.definition.launch_role.inline_actions,
            f"arn:aws:s3:::{bucket}",
            self.definition.template.object_key,
        )

    def findings(self) -> list[Finding]:
        results: list[Finding] = []
        admin_attached = ADMINISTRATOR_ACCESS_ARN in self.definition.launch_role.managed_policy_arns

        if admin_attached:
            results.append(
                Finding(
                    rule_id="managed-admin-access",
                    severity="HIGH",
                    action="*",
                    message="AdministratorAccess is attached to the launch role",
                )
            )

        for statement in self.inline_policy().statements:
            for action in statement.actions:
                service = action.split(":", 1)[0]
                if action == "*":
                    results.append(Finding("full-wildcard", "CRITICAL", action, "Inline policy allows every action"))
                elif action.endswith(":*"):
                    results.append(
                        Finding("service-wildcard", "MEDIUM", action, f"Inline policy allows every {service} action")
                    )
                if service in HIGH_RISK_SERVICES:
                    results.append(
                        Finding("high-risk-service", "HIGH", action, f"{service} is a high-risk service")
                    )
                if admin_attached and "*" in statement.resources:
                    results.append(
                        Finding(
                            "redundant-grant",
                            "LOW",
                            action,
                            "Already covered by AdministratorAccess",
                        )
                    )
        return results

    def summary(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for finding in self.findings():
            counts[finding.severity] = counts.get(finding.severity, 0) + 1
        return counts


__all__ = ["Finding", "PolicyReview"]
