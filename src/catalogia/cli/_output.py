"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
import sys
from typing import Any


def print_table(headers: list[str], rows: list[list[Any]], *, json_mode: bool = False) -> None:
    """Print data as a table (text) or JSON array."""
    if json_mode:
        data = [dict(zip(headers, row)) for row in rows]
        print(json.dumps(data, indent=2, default=str))
        return

    if not rows:
        return

    widths = [len(h) for h in headers]
    str_rows = [["" if v is None else str(v) for v in row] for row in rows]
    for row in str_rows:
        for i, val in enumerate(row):
            widths[i] = max(widths[i], len(val))

    print("  ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
    print("  ".join("-" * w for w in widths))
    for row in str_rows:
        print("  ".join(val.ljust(widths[i]) for i, val in enumerate(row)))


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def entity_row(entity: dict[str, Any]) -> list[Any]:
    """kind / namespace / name / title columns for an entity."""
    metadata = entity.get("metadata") or {}
    return [
        entity.get("kind"),
        metadata.get("namespace", "default"),
        metadata.get("name"),
        metadata.get("title", ""),
    ]


ENTITY_HEADERS = ["kind", "namespace", "name", "title"]


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {msg}", file=sys.stderr)
