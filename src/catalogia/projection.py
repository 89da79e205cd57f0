"""Declarative field selection for entity responses."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterable

from catalogia.errors import InvalidRequestError


@dataclass(frozen=True)
class FieldSelector:
    """A set of dotted paths to keep in each returned entity.

    ``FieldSelector(("kind", "metadata.name"))`` keeps only those two paths.
    Paths that are missing in an entity are skipped.
    """

    paths: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.paths:
            raise InvalidRequestError("Field selector needs at least one path")
        for p in self.paths:
            if not isinstance(p, str) or not p or any(not s for s in p.split(".")):
                raise InvalidRequestError(f"Invalid field selector path {p!r}")

    @classmethod
    def parse(cls, value: str | Iterable[str] | None) -> FieldSelector | None:
        """Accept ``"kind,metadata.name"`` or an iterable of paths."""
        if value is None:
            return None
        if isinstance(value, FieldSelector):
            return value
        if isinstance(value, str):
            parts = [p.strip() for p in value.split(",") if p.strip()]
        else:
            parts = [p.strip() for p in value]
        return cls(tuple(parts))

    def apply(self, entity: dict[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for path in self.paths:
            segments = path.split(".")
            node: Any = entity
            for s in segments:
                if not isinstance(node, dict) or s not in node:
                    break
                node = node[s]
            else:
                target = out
                for s in segments[:-1]:
                    target = target.setdefault(s, {})
                target[segments[-1]] = copy.deepcopy(node)
        return out


def apply_fields(entity: dict[str, Any], fields: FieldSelector | None) -> dict[str, Any]:
    return fields.apply(entity) if fields is not None else entity
