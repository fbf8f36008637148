"""Read the values surfaced by a deployed catalog stack."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import boto3
from botocore.exceptions import ClientError

from core.constants import OUTPUT_KEYS

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StackOutputs:
    portfolio_id: str
    product_id: str
    launch_role_arn: str

    @classmethod
    def from_outputs(cls, outputs: list[dict[str, Any]]) -> "StackOutputs":
        values = {entry.get("OutputKey"): entry.get("OutputValue") for entry in outputs}
        missing = [key for key in OUTPUT_KEYS.values() if not values.get(key)]
        if missing:
            raise KeyError(f"Stack outputs missing: {', '.join(missing)}")
        return cls(**{field: values[key] for field, key in OUTPUT_KEYS.items()})

    @classmethod
    def fetch(cls, stack_name: str, client: Any | None = None, region: str | None = None) -> "StackOutputs":
        cfn = client or boto3.client("cloudformation", region_name=region)
        try:
            response = cfn.describe_stacks(StackName=stack_name)
        except ClientError as exc:
            message = exc.response.get("Error", {}).get("Message", "")
            if "does not exist" in message:
                raise LookupError(f"Stack {stack_name} does not exist") from exc
            raise
        stacks = response.get("Stacks", [])
        if not stacks:
            raise LookupError(f"Stack {stack_name} does not exist")
        logger.debug("Stack %s status %s", stack_name, stacks[0].get("StackStatus"))
        return cls.from_outputs(stacks[0].get("Outputs", []))

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


__all__ = ["StackOutputs"]
