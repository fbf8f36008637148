"""Data models describing the Service Catalog definition."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from core.constants import (
    ADMINISTRATOR_ACCESS_ARN,
    DEFAULT_INLINE_ACTIONS,
    DEFAULT_TEMPLATE_PREFIX,
    DEFAULT_TEMPLATE_SOURCE,
)

ACCOUNT_PATTERN = re.compile(r"^\d{12}$")
REGION_PATTERN = re.compile(r"^[a-z]{2}(-gov)?-[a-z]+-\d$")


class BackendConfig(BaseModel):
    """Location where applied state and uploaded assets are kept."""

    bucket: str = Field(..., description="Bucket holding state and file assets")
    key: str = Field(..., description="State key, e.g. service-catalog/terraform.tfstate")
    region: str
    encrypt: bool = True
    use_lockfile: bool = True

    @computed_field
    @property
    def stack_name(self) -> str:
        """CloudFormation stack name derived from the first segment of the key."""
        head = self.key.strip("/").split("/", 1)[0]
        head = re.sub(r"\.tfstate$", "", head)
        name = re.sub(r"[^A-Za-z0-9-]+", "-", head).strip("-")
        if not name or not name[0].isalpha():
            name = f"svccat-{name}".rstrip("-")
        return name[:128]

    @computed_field
    @property
    def asset_prefix(self) -> str:
        return f"{self.stack_name}/"


class PublicAccessBlock(BaseModel):
    """S3 public access block; every flag is pinned to true."""

    block_public_acls: Literal[True] = True
    block_public_policy: Literal[True] = True
    ignore_public_acls: Literal[True] = True
    restrict_public_buckets: Literal[True] = True

    def as_cfn(self) -> dict[str, bool]:
        return {
            "BlockPublicAcls": self.block_public_acls,
            "BlockPublicPolicy": self.block_public_policy,
            "IgnorePublicAcls": self.ignore_public_acls,
            "RestrictPublicBuckets": self.restrict_public_buckets,
        }


class BucketSpec(BaseModel):
    prefix: str = "service-catalog-templates"
    suffix_seed: str = "template-bucket"
    suffix_bytes: int = Field(default=4, ge=2, le=16)
    suffix: Optional[str] = Field(default=None, description="Pin the suffix instead of deriving it from the seed")
    block_public_access: PublicAccessBlock = Field(default_factory=PublicAccessBlock)

    model_config = {"extra": "forbid"}


class TemplateSpec(BaseModel):
    source: Path = Path(DEFAULT_TEMPLATE_SOURCE)
    key_prefix: str = DEFAULT_TEMPLATE_PREFIX

    @computed_field
    @property
    def object_key(self) -> str:
        prefix = self.key_prefix.strip("/")
        return f"{prefix}/{self.source.name}" if prefix else self.source.name


class LaunchRoleSpec(BaseModel):
    name: str = "ServiceCatalogLaunchRole"
    managed_policy_arns: list[str] = Field(default_factory=lambda: [ADMINISTRATOR_ACCESS_ARN])
    inline_policy_name: str = "ServiceCatalogLaunchPolicy"
    inline_actions: list[str] = Field(default_factory=lambda: list(DEFAULT_INLINE_ACTIONS))

    @field_validator("inline_actions")
    @classmethod
    def _actions_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("inline_actions must list at least one action")
        for action in value:
            if action != "*" and ":" not in action:
                raise ValueError(f"Invalid IAM action: {action!r}")
        return value


class PortfolioSpec(BaseModel):
    name: str
    description: str = ""
    provider_name: str


class ArtifactSpec(BaseModel):
    name: str = "v1.0"
    description: str = ""
    artifact_type: str = "CLOUD_FORMATION_TEMPLATE"


class ProductSpec(BaseModel):
    name: str
    owner: str
    description: str = ""
    product_type: str = "CLOUD_FORMATION_TEMPLATE"
    artifact: ArtifactSpec = Field(default_factory=ArtifactSpec)


class PrincipalSpec(BaseModel):
    user_name: str
    principal_type: str = "IAM"

    def arn(self, account: str) -> str:
        return f"arn:aws:iam::{account}:user/{self.user_name}"


class CatalogDefinition(BaseModel):
    """Complete desired state for one Service Catalog root."""

    account: str
    region: str
    backend: BackendConfig
    bucket: BucketSpec = Field(default_factory=BucketSpec)
    template: TemplateSpec = Field(default_factory=TemplateSpec)
    launch_role: LaunchRoleSpec = Field(default_factory=LaunchRoleSpec)
    portfolio: PortfolioSpec
    product: ProductSpec
    principal: PrincipalSpec

    @field_validator("account", mode="before")
    @classmethod
    def _check_account(cls, value: Any) -> str:
        value = str(value)
        if not ACCOUNT_PATTERN.match(value):
            raise ValueError("account must be a 12 digit AWS account id")
        return value

    @field_validator("region")
    @classmethod
    def _check_region(cls, value: str) -> str:
        if not REGION_PATTERN.match(value):
            raise ValueError(f"Invalid AWS region: {value!r}")
        return value

    @model_validator(mode="after")
    def _backend_region_matches(self) -> "CatalogDefinition":
        if self.backend.region != self.region:
            raise ValueError(
                f"backend region {self.backend.region!r} must match provider region {self.region!r}"
            )
        return self

    @computed_field
    @property
    def principal_arn(self) -> str:
        return self.principal.arn(self.account)


class PolicyStatement(BaseModel):
    """IAM policy statement serialized with AWS key casing."""

    sid: str | None = Field(default=None, alias="Sid")
    effect: str = Field(default="Allow", alias="Effect")
    principal: dict[str, Any] | None = Field(default=None, alias="Principal")
    actions: list[str] = Field(default_factory=list, alias="Action")
    resources: list[str] = Field(default_factory=list, alias="Resource")
    conditions: dict[str, Any] = Field(default_factory=dict, alias="Condition")

    model_config = {
        "populate_by_name": True,
        "use_enum_values": True,
    }

    @field_validator("effect")
    @classmethod
    def _check_effect(cls, value: str) -> str:
        if value not in {"Allow", "Deny"}:
            raise ValueError("Effect must be 'Allow' or 'Deny'")
        return value

    def to_aws(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.sid:
            payload["Sid"] = self.sid
        payload["Effect"] = self.effect
        if self.principal:
            payload["Principal"] = self.principal
        payload["Action"] = self.actions[0] if len(self.actions) == 1 else list(self.actions)
        if self.resources:
            payload["Resource"] = self.resources[0] if len(self.resources) == 1 else list(self.resources)
        if self.conditions:
            payload["Condition"] = self.conditions
        return payload


class PolicyDoc(BaseModel):
    """IAM policy document composed of statements."""

    version: str = Field(default="2012-10-17", alias="Version")
    statements: list[PolicyStatement] = Field(default_factory=list, alias="Statement")

    model_config = {
        "populate_by_name": True,
        "use_enum_values": True,
    }

    @computed_field
    @property
    def services(self) -> list[str]:
        """Return unique AWS services referenced in the policy."""
        services: set[str] = set()
        for statement in self.statements:
            for action in statement.actions:
                services.add(action.split(":", 1)[0])
        return sorted(services)

    def to_aws(self) -> dict[str, Any]:
        return {
            "Version": self.version,
            "Statement": [statement.to_aws() for statement in self.statements],
        }


def load_definition(path: Path) -> CatalogDefinition:
    """Read a YAML definition; relative template paths resolve against its directory."""
    if not path.exists():
        raise FileNotFoundError(path)

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    if not isinstance(data, dict):
        raise ValueError("Definition file must be a mapping of keys to values.")

    definition = CatalogDefinition.model_validate(data)
    source = definition.template.source
    if not source.is_absolute():
        definition.template.source = (path.resolve().parent / source).resolve()
    return definition


__all__ = [
    "ArtifactSpec",
    "BackendConfig",
    "BucketSpec",
    "CatalogDefinition",
    "LaunchRoleSpec",
    "PolicyDoc",
    "PolicyStatement",
    "PortfolioSpec",
    "PrincipalSpec",
    "ProductSpec",
    "PublicAccessBlock",
    "TemplateSpec",
    "load_definition",
]
