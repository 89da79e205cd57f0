"""Filter expression types for entity queries.

A filter is a tree of ``AllOf`` / ``AnyOf`` / ``Not`` nodes over ``Leaf``
matchers. Leaves look up a dotted key in an entity's search projection; all
comparisons are case-insensitive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from catalogia.errors import InvalidFilterError
from catalogia.search import SearchProjection, project

_OPERATOR_KEYS = ("allOf", "anyOf", "not")


class EntityFilter:
    """Base class for filter expressions."""

    def __and__(self, other: EntityFilter) -> AllOf:
        return AllOf([self, other])

    def __or__(self, other: EntityFilter) -> AnyOf:
        return AnyOf([self, other])

    def __invert__(self) -> Not:
        return Not(self)


@dataclass(eq=False)
class Leaf(EntityFilter):
    """Match on a key, optionally restricted to a set of values.

    ``values=None`` means the key only has to be present.
    """

    key: str
    values: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key.strip():
            raise InvalidFilterError("Filter key must be a non-empty string")
        self.key = self.key.strip().lower()
        if self.values is not None:
            if isinstance(self.values, str) or not all(isinstance(v, str) for v in self.values):
                raise InvalidFilterError(f"Filter values for '{self.key}' must be strings")
            self.values = tuple(v.lower() for v in self.values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Leaf):
            return NotImplemented
        return self.key == other.key and self.values == other.values

    def __hash__(self) -> int:
        return hash((self.key, self.values))


@dataclass
class AllOf(EntityFilter):
    children: list[EntityFilter] = field(default_factory=list)


@dataclass
class AnyOf(EntityFilter):
    children: list[EntityFilter] = field(default_factory=list)


@dataclass
class Not(EntityFilter):
    child: EntityFilter


@dataclass(frozen=True)
class FullTextFilter:
    """Substring match of ``term`` against the projected values of ``fields``."""

    term: str
    fields: tuple[str, ...] | None = None


def matches(projection: SearchProjection, expr: EntityFilter | None) -> bool:
    """Evaluate a filter tree against one entity's search projection."""
    if expr is None:
        return True
    if isinstance(expr, Leaf):
        found = projection.get(expr.key)
        if not found:
            return False
        if expr.values is None:
            return True
        return any(v in expr.values for v in found)
    if isinstance(expr, AllOf):
        return all(matches(projection, c) for c in expr.children)
    if isinstance(expr, AnyOf):
        return any(matches(projection, c) for c in expr.children)
    if isinstance(expr, Not):
        return not matches(projection, expr.child)
    raise InvalidFilterError(f"Unknown filter expression type: {type(expr).__name__}")


def entity_matches(entity: dict[str, Any], expr: EntityFilter | None) -> bool:
    return matches(project(entity), expr)


def matches_full_text(
    projection: SearchProjection,
    full_text: FullTextFilter | None,
    default_fields: list[str] | None = None,
) -> bool:
    """Check the full-text term against the selected projected values.

    Fields default to ``default_fields``; if that is empty too, every projected
    value is searched.
    """
    if full_text is None:
        return True
    term = full_text.term.strip().lower()
    if not term:
        return True
    fields = full_text.fields or default_fields
    if fields:
        candidates = (v for f in fields for v in projection.get(f.lower(), ()))
    else:
        candidates = (v for values in projection.values() for v in values)
    return any(term in v for v in candidates)


def parse_filter(data: Any) -> EntityFilter | None:
    """Parse the wire shape of a filter into an expression tree."""
    if data is None:
        return None
    if isinstance(data, EntityFilter):
        return data
    if not isinstance(data, dict):
        raise InvalidFilterError(f"Filter must be an object, got {type(data).__name__}")

    ops = [k for k in _OPERATOR_KEYS if k in data]
    if len(ops) > 1:
        raise InvalidFilterError(f"Filter node has more than one operator: {ops}")
    if ops:
        op = ops[0]
        if len(data) != 1:
            raise InvalidFilterError(f"Unexpected keys next to '{op}': {sorted(data)}")
        body = data[op]
        if op == "not":
            child = parse_filter(body)
            if child is None:
                raise InvalidFilterError("'not' requires a sub-filter")
            return Not(child)
        if not isinstance(body, list):
            raise InvalidFilterError(f"'{op}' requires a list of sub-filters")
        children = [parse_filter(c) for c in body]
        if any(c is None for c in children):
            raise InvalidFilterError(f"'{op}' contains an empty sub-filter")
        return AllOf(children) if op == "allOf" else AnyOf(children)  # type: ignore[arg-type]

    if "key" not in data:
        raise InvalidFilterError(f"Unknown filter operator in {sorted(data)}")
    extra = set(data) - {"key", "values"}
    if extra:
        raise InvalidFilterError(f"Unexpected keys in filter leaf: {sorted(extra)}")
    values = data.get("values")
    if values is not None and not isinstance(values, list):
        raise InvalidFilterError("Filter 'values' must be a list of strings")
    return Leaf(data["key"], tuple(values) if values is not None else None)


def filter_to_dict(expr: EntityFilter | None) -> dict[str, Any] | None:
    """Serialize an expression tree back to its wire shape."""
    if expr is None:
        return None
    if isinstance(expr, Leaf):
        out: dict[str, Any] = {"key": expr.key}
        if expr.values is not None:
            out["values"] = list(expr.values)
        return out
    if isinstance(expr, AllOf):
        return {"allOf": [filter_to_dict(c) for c in expr.children]}
    if isinstance(expr, AnyOf):
        return {"anyOf": [filter_to_dict(c) for c in expr.children]}
    if isinstance(expr, Not):
        return {"not": filter_to_dict(expr.child)}
    raise InvalidFilterError(f"Unknown filter expression type: {type(expr).__name__}")
