"""Static plan check tests against hand-built templates."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

from core.checks import (
    check_artifact_url,
    check_backend,
    check_constraint_ordering,
    check_idempotent,
    check_public_access_block,
    check_template_hash,
    run_checks,
)
from core.models import CatalogDefinition
from core.template import TemplateArtifact

TEMPLATE_PATH = Path(__file__).resolve().parents[1] / "infra/templates/ec2_instance_cft.yaml"
KEY = "templates/ec2_instance_cft.yaml"
ADMIN = "arn:aws:iam::aws:policy/AdministratorAccess"


def _template(sha256: str = "abc") -> dict[str, Any]:
    return {
        "Resources": {
            "TemplateBucket1234": {
                "Type": "AWS::S3::Bucket",
                "Properties": {
                    "BucketName": "service-catalog-templates-0a1b2c3d",
                    "PublicAccessBlockConfiguration": {
                        "BlockPublicAcls": True,
                        "BlockPublicPolicy": True,
                        "IgnorePublicAcls": True,
                        "RestrictPublicBuckets": True,
                    },
                },
            },
            "TemplateObjectCustomResource": {"Type": "Custom::CDKBucketDeployment", "Properties": {}},
            "DeploymentHandlerRole": {"Type": "AWS::IAM::Role", "Properties": {}},
            "DeploymentHandlerPolicy": {
                "Type": "AWS::IAM::Policy",
                "Properties": {"Roles": [{"Ref": "DeploymentHandlerRole"}]},
            },
            "LaunchRole": {"Type": "AWS::IAM::Role", "Properties": {"ManagedPolicyArns": [ADMIN]}},
            "LaunchRolePolicy": {
                "Type": "AWS::IAM::Policy",
                "Properties": {"Roles": [{"Ref": "LaunchRole"}]},
            },
            "Portfolio": {"Type": "AWS::ServiceCatalog::Portfolio", "Properties": {}},
            "Product": {
                "Type": "AWS::ServiceCatalog::CloudFormationProduct",
                "Properties": {
                    "ProvisioningArtifactParameters": [
                        {
                            "Info": {
                                "LoadTemplateFromURL": {
                                    "Fn::Join": [
                                        "",
                                        [
                                            "https://",
                                            {"Fn::GetAtt": ["TemplateBucket1234", "RegionalDomainName"]},
                                            f"/{KEY}",
                                        ],
                                    ]
                                }
                            },
                            "Name": "v1.0",
                        }
                    ]
                },
                "DependsOn": ["TemplateObjectCustomResource"],
                "Metadata": {"TemplateSha256": sha256},
            },
            "LaunchConstraint": {
                "Type": "AWS::ServiceCatalog::LaunchRoleConstraint",
                "Properties": {"RoleArn": {"Fn::GetAtt": ["LaunchRole", "Arn"]}},
                "DependsOn": ["LaunchRole", "LaunchRolePolicy", "PortfolioProductAssociation"],
            },
        }
    }


def test_public_access_block_passes_when_all_true():
    assert check_public_access_block(_template()).passed


def test_public_access_block_fails_for_any_false_flag():
    template = _template()
    template["Resources"]["TemplateBucket1234"]["Properties"]["PublicAccessBlockConfiguration"]["IgnorePublicAcls"] = False
    result = check_public_access_block(template)
    assert not result.passed
    assert "IgnorePublicAcls" in result.detail


def test_public_access_block_fails_without_configuration():
    template = _template()
    del template["Resources"]["TemplateBucket1234"]["Properties"]["PublicAccessBlockConfiguration"]
    assert not check_public_access_block(template).passed


def test_constraint_ordering_ignores_unrelated_roles():
    result = check_constraint_ordering(_template(), [ADMIN])
    assert result.passed, result.detail


def test_constraint_ordering_requires_inline_policy_dependency():
    template = _template()
    template["Resources"]["LaunchConstraint"]["DependsOn"] = ["LaunchRole"]
    result = check_constraint_ordering(template, [ADMIN])
    assert not result.passed
    assert "LaunchRolePolicy" in result.detail


def test_constraint_ordering_requires_managed_policy():
    template = _template()
    template["Resources"]["LaunchRole"]["Properties"]["ManagedPolicyArns"] = []
    assert not check_constraint_ordering(template, [ADMIN]).passed


def test_constraint_ordering_requires_declared_role():
    template = _template()
    template["Resources"]["LaunchConstraint"]["Properties"]["RoleArn"] = "arn:aws:iam::123456789012:role/Other"
    assert not check_constraint_ordering(template, [ADMIN]).passed


def test_artifact_url_accepts_regional_domain_join():
    assert check_artifact_url(_template(), KEY).passed


def test_artifact_url_requires_template_upload_dependency():
    template = _template()
    template["Resources"]["Product"]["DependsOn"] = []
    result = check_artifact_url(template, KEY)
    assert not result.passed
    assert "template upload" in result.detail


def test_artifact_url_rejects_website_domain():
    template = _template()
    url = template["Resources"]["Product"]["Properties"]["ProvisioningArtifactParameters"][0]["Info"]
    url["LoadTemplateFromURL"]["Fn::Join"][1][1] = {"Fn::GetAtt": ["TemplateBucket1234", "WebsiteURL"]}
    assert not check_artifact_url(template, KEY).passed


def test_artifact_url_literal_must_match_bucket_and_region():
    template = _template()
    info = template["Resources"]["Product"]["Properties"]["ProvisioningArtifactParameters"][0]["Info"]
    info["LoadTemplateFromURL"] = f"https://bucket-0a1b.s3.us-east-1.amazonaws.com/{KEY}"
    assert check_artifact_url(template, KEY, "bucket-0a1b", "us-east-1").passed
    assert not check_artifact_url(template, KEY, "bucket-0a1b", "eu-west-1").passed


def test_template_hash_must_match_file():
    artifact = TemplateArtifact.load(TEMPLATE_PATH, KEY)
    assert check_template_hash(_template(artifact.sha256), artifact).passed
    assert not check_template_hash(_template("stale"), artifact).passed


def test_idempotent_reports_changed_resources():
    first = _template()
    assert check_idempotent(first, copy.deepcopy(first)).passed
    second = copy.deepcopy(first)
    second["Resources"]["Portfolio"]["Properties"]["DisplayName"] = "Renamed"
    result = check_idempotent(first, second)
    assert not result.passed
    assert "Portfolio" in result.detail


def test_backend_requires_encryption_and_locking(definition_data):
    assert check_backend(CatalogDefinition.model_validate(definition_data)).passed
    definition_data["backend"]["encrypt"] = False
    definition_data["backend"]["use_lockfile"] = False
    result = check_backend(CatalogDefinition.model_validate(definition_data))
    assert not result.passed
    assert "encryption disabled" in result.detail
    assert "state locking disabled" in result.detail


def test_run_checks_all_pass(definition_data):
    definition = CatalogDefinition.model_validate(definition_data)
    artifact = TemplateArtifact.load(TEMPLATE_PATH, KEY)
    template = _template(artifact.sha256)
    results = run_checks(definition, artifact, template, copy.deepcopy(template))
    assert [result.name for result in results] == [
        "backend",
        "public-access-block",
        "constraint-ordering",
        "artifact-url",
        "template-hash",
        "idempotent",
    ]
    assert all(result.passed for result in results), [r.as_dict() for r in results if not r.passed]
