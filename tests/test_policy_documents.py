"""Launch role policy document tests."""

from __future__ import annotations

import pytest

from core.models import PolicyDoc, PolicyStatement
from core.policy.documents import launch_role_inline_policy, launch_role_trust_policy, validate_policy


def test_trust_policy_scoped_to_account_and_region():
    payload = launch_role_trust_policy("123456789012", "eu-west-1").to_aws()
    statement = payload["Statement"][0]
    assert statement["Principal"] == {"Service": "servicecatalog.amazonaws.com"}
    assert statement["Action"] == "sts:AssumeRole"
    assert statement["Condition"]["StringEquals"] == {"aws:SourceAccount": "123456789012"}
    assert statement["Condition"]["ArnLike"] == {
        "aws:SourceArn": "arn:aws:servicecatalog:eu-west-1:123456789012:*"
    }
    assert "Resource" not in statement


def test_inline_policy_grants_wildcards_and_template_read():
    policy = launch_role_inline_policy(
        ["servicecatalog:*", "cloudformation:*", "servicecatalog:*"],
        "arn:aws:s3:::templates-0a1b2c3d",
        "templates/ec2_instance_cft.yaml",
    )
    provisioning, read = policy.statements
    assert provisioning.actions == ["cloudformation:*", "servicecatalog:*"]
    assert provisioning.resources == ["*"]
    assert read.actions == ["s3:GetObject"]
    assert read.resources == ["arn:aws:s3:::templates-0a1b2c3d/templates/ec2_instance_cft.yaml"]
    assert policy.services == ["cloudformation", "s3", "servicecatalog"]


def test_validate_policy_requires_statements():
    with pytest.raises(ValueError, match="at least one statement"):
        validate_policy(PolicyDoc(statements=[]))


def test_validate_policy_requires_actions():
    with pytest.raises(ValueError, match="no actions"):
        validate_policy(PolicyDoc(statements=[PolicyStatement(sid="Empty", resources=["*"])]))


def test_validate_policy_rejects_duplicate_sids():
    statements = [
        PolicyStatement(sid="Same", actions=["s3:GetObject"]),
        PolicyStatement(sid="Same", actions=["s3:PutObject"]),
    ]
    with pytest.raises(ValueError, match="Duplicate"):
        validate_policy(PolicyDoc(statements=statements))
