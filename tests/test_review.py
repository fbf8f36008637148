"""Launch role permission review tests."""

from __future__ import annotations

from core.models import CatalogDefinition
from core.policy.review import Finding, PolicyReview


def _rules(review: PolicyReview) -> list[tuple[str, str]]:
    return [(finding.rule_id, finding.action) for finding in review.findings()]


def test_default_definition_reports_admin_and_redundant_wildcards(definition_data):
    review = PolicyReview(CatalogDefinition.model_validate(definition_data))
    assert _rules(review) == [
        ("managed-admin-access", "*"),
        ("service-wildcard", "cloudformation:*"),
        ("redundant-grant", "cloudformation:*"),
        ("service-wildcard", "servicecatalog:*"),
        ("redundant-grant", "servicecatalog:*"),
    ]
    assert review.summary() == {"HIGH": 1, "MEDIUM": 2, "LOW": 2}


def test_review_does_not_modify_definition(definition_data):
    definition = CatalogDefinition.model_validate(definition_data)
    before = definition.model_dump()
    PolicyReview(definition).findings()
    assert definition.model_dump() == before


def test_without_admin_access_no_redundancy(definition_data):
    definition_data["launch_role"] = {"managed_policy_arns": []}
    review = PolicyReview(CatalogDefinition.model_validate(definition_data))
    rules = {rule for rule, _ in _rules(review)}
    assert rules == {"service-wildcard"}


def test_full_wildcard_and_high_risk_services(definition_data):
    definition_data["launch_role"] = {"managed_policy_arns": [], "inline_actions": ["*", "iam:PassRole"]}
    findings = PolicyReview(CatalogDefinition.model_validate(definition_data)).findings()
    by_rule = {finding.rule_id: finding for finding in findings}
    assert by_rule["full-wildcard"].severity == "CRITICAL"
    assert by_rule["high-risk-service"].action == "iam:PassRole"


def test_finding_serializes_rule_id():
    payload = Finding("service-wildcard", "MEDIUM", "cloudformation:*", "msg").as_dict()
    assert payload == {"ruleId": "service-wildcard", "severity": "MEDIUM", "action": "cloudformation:*", "message": "msg"}
