"""Total ordering of entities over a multi-field sort spec."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Literal, Sequence

from catalogia.errors import InvalidRequestError
from catalogia.refs import DEFAULT_NAMESPACE

SortValues = list[str | None]


@dataclass(frozen=True)
class EntityOrder:
    field: str
    order: Literal["asc", "desc"] = "asc"

    def __post_init__(self) -> None:
        if not self.field or not isinstance(self.field, str):
            raise InvalidRequestError("Order field must be a non-empty string")
        if self.order not in ("asc", "desc"):
            raise InvalidRequestError(f"Order must be 'asc' or 'desc', got {self.order!r}")

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "order": self.order}


def parse_order(data: Any) -> list[EntityOrder]:
    """Accept EntityOrder instances, ``{"field", "order"}`` dicts or ``field[:dir]`` strings."""
    if data is None:
        return []
    out: list[EntityOrder] = []
    for item in data:
        if isinstance(item, EntityOrder):
            out.append(item)
        elif isinstance(item, dict):
            out.append(EntityOrder(item.get("field", ""), item.get("order", "asc")))
        elif isinstance(item, str):
            name, _, direction = item.partition(":")
            out.append(EntityOrder(name, direction or "asc"))  # type: ignore[arg-type]
        else:
            raise InvalidRequestError(f"Cannot interpret order spec {item!r}")
    return out


def _lookup(node: Any, segment: str) -> Any:
    if not isinstance(node, dict):
        return None
    if segment in node:
        return node[segment]
    lowered = segment.lower()
    for k, v in node.items():
        if isinstance(k, str) and k.lower() == lowered:
            return v
    return None


def read_sort_value(entity: dict[str, Any], field_path: str) -> str | None:
    """Read a field as a sortable string; lists yield their first scalar."""
    current: Any = entity
    for segment in field_path.split("."):
        current = _lookup(current, segment)
        if current is None:
            return None
    if isinstance(current, list):
        current = next((v for v in current if not isinstance(v, (dict, list))), None)
    if current is None or isinstance(current, dict):
        return None
    if isinstance(current, bool):
        return "true" if current else "false"
    return str(current)


def sort_values(
    entity: dict[str, Any],
    order: Sequence[EntityOrder],
    ref: str,
    default_namespace: str = DEFAULT_NAMESPACE,
) -> SortValues:
    """The composite key of an entity: order field values then its canonical ref.

    A missing namespace sorts as the default namespace, the same value filters see.
    """
    values: SortValues = []
    for o in order:
        value = read_sort_value(entity, o.field)
        if value is None and o.field.lower() == "metadata.namespace":
            value = default_namespace
        values.append(value)
    values.append(ref)
    return values


def _compare_field(a: str | None, b: str | None, descending: bool) -> int:
    # Nulls last in either direction
    if a is None or b is None:
        if a is None and b is None:
            return 0
        return 1 if a is None else -1
    if a == b:
        return 0
    result = -1 if a < b else 1
    return -result if descending else result


def compare_values(
    a: Sequence[str | None],
    b: Sequence[str | None],
    order: Sequence[EntityOrder],
    *,
    reverse: bool = False,
) -> int:
    """Compare two composite keys as produced by ``sort_values``.

    ``reverse`` yields the exact mirror of the forward order, nulls included.
    """
    result = 0
    for i, o in enumerate(order):
        result = _compare_field(a[i], b[i], o.order == "desc")
        if result:
            break
    else:
        ta, tb = a[len(order)], b[len(order)]
        result = 0 if ta == tb else (-1 if (ta or "") < (tb or "") else 1)
    return -result if reverse else result


def sort_key(
    order: Sequence[EntityOrder], *, reverse: bool = False
) -> Callable[[Sequence[str | None]], Any]:
    return functools.cmp_to_key(
        lambda a, b: compare_values(a, b, order, reverse=reverse)
    )
