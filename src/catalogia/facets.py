"""Distinct-value counts over a filtered entity set."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from catalogia.cancellation import CancellationToken, check
from catalogia.errors import InvalidRequestError
from catalogia.filters import EntityFilter, matches
from catalogia.search import SearchProjection, project
from catalogia.storage import StoredEntity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacetCount:
    value: str
    count: int

    def to_dict(self) -> dict[str, object]:
        return {"value": self.value, "count": self.count}


def accumulate(
    projections: Iterable[SearchProjection],
    facets: list[str],
    *,
    cancel: CancellationToken | None = None,
) -> dict[str, list[FacetCount]]:
    """Count each distinct (entity, value) pair per requested facet key.

    Output per facet is sorted by descending count, then ascending value.
    """
    counters: dict[str, Counter[str]] = {f: Counter() for f in facets}
    for projection in projections:
        check(cancel)
        for facet, counter in counters.items():
            counter.update(projection.get(facet.lower(), ()))
    return {
        facet: [
            FacetCount(value, n)
            for value, n in sorted(counter.items(), key=lambda item: (-item[1], item[0]))
        ]
        for facet, counter in counters.items()
    }


def compute_facets(
    entities: Iterable[StoredEntity],
    facets: list[str],
    filter_expr: EntityFilter | None = None,
    *,
    default_namespace: str = "default",
    cancel: CancellationToken | None = None,
) -> dict[str, list[FacetCount]]:
    """Filter once over the candidate set, then count values for every facet."""
    if any(not isinstance(f, str) or not f.strip() for f in facets):
        raise InvalidRequestError("Facet names must be non-empty strings")

    def matching() -> Iterable[SearchProjection]:
        for stored in entities:
            check(cancel)
            projection = project(stored.entity, default_namespace)
            if matches(projection, filter_expr):
                yield projection

    result = accumulate(matching(), facets, cancel=cancel)
    logger.debug("Computed %d facets", len(result))
    return result
