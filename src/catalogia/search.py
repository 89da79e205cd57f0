"""Canonical key-value projection of entity documents.

Every filter, facet and full-text match runs against this projection rather
than against the raw document. Keys are dotted paths, and both keys and values
are lower-cased so that matching is case-insensitive.
"""

from __future__ import annotations

from typing import Any, Iterator

from catalogia.refs import DEFAULT_NAMESPACE

MAX_KEY_LENGTH = 200
MAX_VALUE_LENGTH = 200

# Not indexed verbatim; relations get their own keys below.
_SKIPPED_KEYS = frozenset({"attachments", "relations", "status", "metadata.etag"})

SearchProjection = dict[str, tuple[str, ...]]


def _scalar_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    return None


def _walk(path: str, value: Any) -> Iterator[tuple[str, str]]:
    if path.lower() in _SKIPPED_KEYS:
        return
    if isinstance(value, dict):
        for k, v in value.items():
            yield from _walk(f"{path}.{k}" if path else str(k), v)
        return
    if isinstance(value, list):
        for item in value:
            yield from _walk(path, item)
        return
    text = _scalar_text(value)
    if text is not None and path:
        yield path, text


def iter_search_rows(
    entity: dict[str, Any], default_namespace: str = DEFAULT_NAMESPACE
) -> Iterator[tuple[str, str]]:
    """Yield ``(key, value)`` pairs for an entity, lower-cased, deduplicated."""
    seen: set[tuple[str, str]] = set()

    def emit(key: str, value: str) -> Iterator[tuple[str, str]]:
        row = (key.lower(), value.lower())
        if len(row[0]) > MAX_KEY_LENGTH or len(row[1]) > MAX_VALUE_LENGTH:
            return
        if row not in seen:
            seen.add(row)
            yield row

    for key, value in _walk("", entity):
        yield from emit(key, value)

    metadata = entity.get("metadata") or {}
    if not metadata.get("namespace"):
        yield from emit("metadata.namespace", default_namespace)

    for relation in entity.get("relations") or []:
        if not isinstance(relation, dict):
            continue
        rel_type = relation.get("type")
        target = relation.get("targetRef")
        if rel_type and target:
            yield from emit(f"relations.{rel_type}", str(target))


def project(
    entity: dict[str, Any], default_namespace: str = DEFAULT_NAMESPACE
) -> SearchProjection:
    """Group search rows by key."""
    grouped: dict[str, list[str]] = {}
    for key, value in iter_search_rows(entity, default_namespace):
        grouped.setdefault(key, []).append(value)
    return {k: tuple(v) for k, v in grouped.items()}
