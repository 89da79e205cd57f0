"""Upward traversal along parent reference edges."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from catalogia.cancellation import CancellationToken, check
from catalogia.errors import NotFoundError
from catalogia.refs import EntityRef, parse_entity_ref
from catalogia.storage import EntityStoreProtocol

logger = logging.getLogger(__name__)


@dataclass
class AncestryItem:
    entity: dict[str, Any]
    parent_entity_refs: list[str] = field(default_factory=list)


@dataclass
class AncestryResult:
    root_entity_ref: str
    items: list[AncestryItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rootEntityRef": self.root_entity_ref,
            "items": [
                {"entity": i.entity, "parentEntityRefs": list(i.parent_entity_refs)}
                for i in self.items
            ],
        }


def traverse_ancestry(
    store: EntityStoreProtocol,
    root: EntityRef,
    *,
    default_namespace: str = "default",
    cancel: CancellationToken | None = None,
) -> AncestryResult:
    """Breadth-first walk from ``root`` to every reachable parent.

    Each resolved entity appears once. Parent refs that do not resolve stay in
    their child's ``parent_entity_refs`` but get no item of their own. Cycles
    terminate because a ref is never enqueued twice.
    """
    root_key = root.canonical
    if not store.get_entities_by_refs([root]):
        raise NotFoundError("entity", str(root))

    result = AncestryResult(root_entity_ref=root_key)
    seen = {root_key}
    queue: deque[EntityRef] = deque([root])
    while queue:
        check(cancel)
        current = queue.popleft()
        found = store.get_entities_by_refs([current]).get(current.canonical)
        if found is None:
            logger.warning("Dangling parent reference %s", current.canonical)
            continue
        parents = store.get_parent_refs(current)
        result.items.append(AncestryItem(entity=found.entity, parent_entity_refs=parents))
        for parent in parents:
            if parent not in seen:
                seen.add(parent)
                queue.append(parse_entity_ref(parent, default_namespace=default_namespace))
    return result
