"""Configuration loader for the svccat CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULTS = {
    "default_format": "json",
    "definition": "catalog.yml",
    "log_level": "WARNING",
    "stack_name": None,
}


@dataclass(slots=True)
class Settings:
    default_format: str = DEFAULTS["default_format"]
    definition: Path = Path(DEFAULTS["definition"])
    log_level: str = DEFAULTS["log_level"]
    stack_name: str | None = DEFAULTS["stack_name"]

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Settings":
        return cls(
            default_format=data.get("default_format", DEFAULTS["default_format"]),
            definition=Path(data.get("definition", DEFAULTS["definition"])),
            log_level=str(data.get("log_level", DEFAULTS["log_level"])).upper(),
            stack_name=data.get("stack_name", DEFAULTS["stack_name"]),
        )

    def merge_cli(
        self,
        format_override: str | None = None,
        definition: Path | None = None,
        log_level: str | None = None,
    ) -> "Settings":
        return Settings(
            default_format=format_override or self.default_format,
            definition=definition or self.definition,
            log_level=(log_level or self.log_level).upper(),
            stack_name=self.stack_name,
        )


def load_settings(path: Path) -> Settings:
    if not path.exists():
        return Settings()

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    if not isinstance(data, dict):
        raise ValueError("Configuration file must be a mapping of keys to values.")

    return Settings.from_mapping(data)


__all__ = ["Settings", "load_settings"]
