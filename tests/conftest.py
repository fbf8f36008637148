"""Shared fixtures for svccat tests."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest
import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]
TEMPLATE_PATH = REPO_ROOT / "infra/templates/ec2_instance_cft.yaml"

BASE_DEFINITION: dict[str, Any] = {
    "account": "123456789012",
    "region": "us-east-1",
    "backend": {
        "bucket": "svccat-state-123456789012",
        "key": "service-catalog/terraform.tfstate",
        "region": "us-east-1",
        "encrypt": True,
        "use_lockfile": True,
    },
    "bucket": {"prefix": "service-catalog-templates", "suffix_seed": "template-bucket"},
    "template": {"source": str(TEMPLATE_PATH), "key_prefix": "templates"},
    "portfolio": {
        "name": "Engineering Portfolio",
        "description": "Self-service infrastructure",
        "provider_name": "Platform Team",
    },
    "product": {"name": "EC2 Instance", "owner": "Platform Team", "artifact": {"name": "v1.0"}},
    "principal": {"user_name": "catalog-admin"},
}


@pytest.fixture
def definition_data() -> dict[str, Any]:
    return copy.deepcopy(BASE_DEFINITION)


@pytest.fixture
def definition_file(tmp_path, definition_data) -> Path:
    path = tmp_path / "catalog.yml"
    path.write_text(yaml.safe_dump(definition_data), encoding="utf-8")
    return path
