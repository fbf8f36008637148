"""Output helpers for the svccat CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

import yaml
from pydantic import BaseModel

SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"
SARIF_LEVELS = {
    "CRITICAL": "error",
    "HIGH": "error",
    "MEDIUM": "warning",
    "LOW": "note",
    "INFO": "note",
}


def _default_serializer(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, set):
        return sorted(value)
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def render(data: Any, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(data, indent=2, default=_default_serializer)
    if fmt == "yaml":
        return yaml.safe_dump(json.loads(json.dumps(data, default=_default_serializer)), sort_keys=False)
    if fmt == "md":
        return _to_markdown(data)
    if fmt == "table":
        return _to_table(data)
    if fmt == "sarif":
        return _to_sarif(data)
    raise ValueError(f"Unsupported format: {fmt}")


def emit(data: Any, fmt: str, output_path: Path | None = None) -> None:
    rendered = render(data, fmt)
    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered + ("\n" if not rendered.endswith("\n") else ""), encoding="utf-8")
    else:
        print(rendered)


def _to_markdown(data: Any) -> str:
    if isinstance(data, list):
        if not data:
            return "(no data)"
        if not isinstance(data[0], dict):
            return "\n".join(f"- {item}" for item in data)
        headers = sorted({key for row in data if isinstance(row, dict) for key in row.keys()})
        lines = ["| " + " | ".join(headers) + " |", "| " + " | ".join(["---"] * len(headers)) + " |"]
        for row in data:
            values = [str(row.get(header, "")) for header in headers]
            lines.append("| " + " | ".join(values) + " |")
        return "\n".join(lines)
    if isinstance(data, dict):
        lines = ["| Key | Value |", "| --- | --- |"]
        for key, value in data.items():
            lines.append(f"| {key} | {value} |")
        return "\n".join(lines)
    return str(data)


def _to_table(data: Any) -> str:
    if isinstance(data, list) and data and isinstance(data[0], dict):
        headers = sorted({key for row in data for key in row.keys()})
        widths = {header: max(len(header), *(len(str(row.get(header, ""))) for row in data)) for header in headers}
        header_line = " ".join(header.ljust(widths[header]) for header in headers)
        sep_line = " ".join("-" * widths[header] for header in headers)
        rows = [" ".join(str(row.get(header, "")).ljust(widths[header]) for header in headers) for row in data]
        return "\n".join([header_line, sep_line, *rows])
    if isinstance(data, dict):
        width = max(len(str(key)) for key in data.keys()) if data else 0
        return "\n".join(f"{str(key).ljust(width)} : {value}" for key, value in data.items())
    if isinstance(data, list):
        return "\n".join(str(item) for item in data)
    return str(data)


def _to_sarif(data: Any) -> str:
    results: List[dict[str, Any]] = []
    rows = data.get("findings", []) if isinstance(data, dict) else data
    if not isinstance(rows, list):
        rows = [rows]

    for idx, item in enumerate(rows, start=1):
        if isinstance(item, dict):
            rule_id = item.get("ruleId") or item.get("check") or f"item-{idx}"
            severity = str(item.get("severity", "info"))
            message = item.get("message") or item.get("detail") or json.dumps(item, ensure_ascii=False)
            result: dict[str, Any] = {
                "ruleId": rule_id,
                "level": SARIF_LEVELS.get(severity.upper(), "note"),
                "message": {"text": f"{item['action']}: {message}" if item.get("action") else message},
                "properties": item,
            }
        else:
            result = {"ruleId": f"item-{idx}", "level": "note", "message": {"text": str(item)}}
        results.append(result)

    sarif = {
        "version": "2.1.0",
        "$schema": SARIF_SCHEMA,
        "runs": [
            {
                "tool": {"driver": {"name": "svccat"}},
                "results": results,
            }
        ],
    }
    return json.dumps(sarif, indent=2)


__all__ = ["emit", "render"]
