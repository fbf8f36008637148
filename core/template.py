"""Load the CloudFormation template uploaded as the product artifact."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class CloudFormationLoader(yaml.SafeLoader):
    """SafeLoader that understands short-form intrinsic functions such as ``!Ref``."""


def _construct_intrinsic(loader: CloudFormationLoader, tag_suffix: str, node: yaml.Node) -> dict[str, Any]:
    name = tag_suffix if tag_suffix in {"Ref", "Condition"} else f"Fn::{tag_suffix}"
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
        if tag_suffix == "GetAtt" and isinstance(value, str):
            value = value.split(".", 1)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)
    return {name: value}


CloudFormationLoader.add_multi_constructor("!", _construct_intrinsic)


def compute_sha256(path: Path) -> str:
    hasher = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(8192), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def parse_template(body: str) -> dict[str, Any]:
    document = yaml.load(body, Loader=CloudFormationLoader)
    if not isinstance(document, dict):
        raise ValueError("CloudFormation template must be a mapping")
    resources = document.get("Resources")
    if not isinstance(resources, dict) or not resources:
        raise ValueError("CloudFormation template must declare at least one resource")
    for logical_id, resource in resources.items():
        if not isinstance(resource, dict) or "Type" not in resource:
            raise ValueError(f"Resource {logical_id!r} is missing a Type")
    return document


@dataclass(slots=True)
class TemplateArtifact:
    """Template file contents plus the digests used to detect changes."""

    path: Path
    object_key: str
    body: str
    sha256: str
    md5: str
    document: dict[str, Any] = field(repr=False)

    @classmethod
    def load(cls, path: Path, object_key: str) -> "TemplateArtifact":
        if not path.exists():
            raise FileNotFoundError(path)
        raw = path.read_bytes()
        body = raw.decode("utf-8")
        document = parse_template(body)
        artifact = cls(
            path=path,
            object_key=object_key,
            body=body,
            sha256=compute_sha256(path),
            md5=hashlib.md5(raw).hexdigest(),
            document=document,
        )
        logger.debug("Loaded template %s (sha256=%s)", path, artifact.sha256)
        return artifact

    @property
    def resources(self) -> dict[str, str]:
        return {logical_id: res["Type"] for logical_id, res in self.document["Resources"].items()}

    @property
    def parameters(self) -> list[str]:
        return sorted((self.document.get("Parameters") or {}).keys())

    @property
    def description(self) -> str:
        return str(self.document.get("Description", ""))


__all__ = ["CloudFormationLoader", "TemplateArtifact", "compute_sha256", "parse_template"]
