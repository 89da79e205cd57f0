"""Entity references: ``kind:namespace/name`` identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from catalogia.errors import InvalidRequestError

DEFAULT_NAMESPACE = "default"


@dataclass(frozen=True)
class EntityRef:
    """A compound entity identifier.

    Equality and hashing are case-insensitive; the original casing is kept for
    display only.
    """

    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.namespace}/{self.name}"

    @property
    def canonical(self) -> str:
        return str(self).lower()

    def __eq__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, EntityRef):
            return NotImplemented
        return self.canonical == other.canonical

    def __hash__(self) -> int:
        return hash(self.canonical)


def parse_entity_ref(
    ref: str | EntityRef,
    *,
    default_kind: str | None = None,
    default_namespace: str = DEFAULT_NAMESPACE,
) -> EntityRef:
    """Parse ``[kind:][namespace/]name`` into an EntityRef."""
    if isinstance(ref, EntityRef):
        return ref
    if not isinstance(ref, str) or not ref.strip():
        raise InvalidRequestError(f"Entity reference must be a non-empty string, got {ref!r}")

    rest = ref.strip()
    kind: str | None = default_kind
    if ":" in rest:
        kind, rest = rest.split(":", 1)
    namespace = default_namespace
    if "/" in rest:
        namespace, rest = rest.split("/", 1)
    name = rest

    if not kind:
        raise InvalidRequestError(f"Entity reference '{ref}' has no kind")
    if not namespace or not name or ":" in name or "/" in name:
        raise InvalidRequestError(f"Malformed entity reference '{ref}'")
    return EntityRef(kind=kind, namespace=namespace, name=name)


def ref_of(entity: dict[str, Any], default_namespace: str = DEFAULT_NAMESPACE) -> EntityRef:
    """Build the reference of an entity document."""
    metadata = entity.get("metadata") or {}
    kind = entity.get("kind")
    name = metadata.get("name")
    if not kind or not name:
        raise InvalidRequestError("Entity is missing kind or metadata.name")
    return EntityRef(
        kind=str(kind),
        namespace=str(metadata.get("namespace") or default_namespace),
        name=str(name),
    )
