"""Bucket naming and template URL helpers."""

from __future__ import annotations

import hashlib
import ipaddress
import re

from core.models import BucketSpec

BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")


def random_suffix(seed: str, byte_length: int = 4) -> str:
    """Hex suffix of ``byte_length`` bytes; stable until the seed is replaced."""
    if byte_length < 1:
        raise ValueError("byte_length must be positive")
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    if byte_length > len(digest):
        raise ValueError(f"byte_length must be at most {len(digest)}")
    return digest[:byte_length].hex()


def validate_bucket_name(name: str) -> str:
    if not BUCKET_NAME_PATTERN.match(name):
        raise ValueError(f"Invalid S3 bucket name: {name!r}")
    if ".." in name or ".-" in name or "-." in name:
        raise ValueError(f"Invalid S3 bucket name: {name!r}")
    try:
        ipaddress.ip_address(name)
    except ValueError:
        return name
    raise ValueError(f"S3 bucket name must not be formatted as an IP address: {name!r}")


def bucket_name(prefix: str, suffix: str) -> str:
    return validate_bucket_name(f"{prefix}-{suffix}")


def resolve_bucket_name(spec: BucketSpec) -> str:
    suffix = spec.suffix or random_suffix(spec.suffix_seed, spec.suffix_bytes)
    return bucket_name(spec.prefix, suffix)


def regional_domain_name(bucket: str, region: str) -> str:
    return f"{bucket}.s3.{region}.amazonaws.com"


def template_url(bucket: str, region: str, object_key: str) -> str:
    return f"https://{regional_domain_name(bucket, region)}/{object_key.lstrip('/')}"


__all__ = [
    "bucket_name",
    "random_suffix",
    "regional_domain_name",
    "resolve_bucket_name",
    "template_url",
    "validate_bucket_name",
]
