"""Page retrieval: keyset pagination over cursors and plain offset pagination.

Page boundaries are computed against whatever the store returns for each call.
There is no snapshot spanning calls, so ``total_items`` and page edges can drift
when entities change between requests.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, replace
from typing import ClassVar, Sequence, Union

from catalogia.cancellation import CancellationToken, check
from catalogia.cursor import Cursor
from catalogia.errors import InvalidRequestError
from catalogia.filters import EntityFilter, FullTextFilter, matches, matches_full_text
from catalogia.ordering import EntityOrder, SortValues, compare_values, sort_key, sort_values
from catalogia.search import project
from catalogia.storage import EntityStoreProtocol, StoredEntity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoNextPage:
    has_next_page: ClassVar[bool] = False

    def to_dict(self) -> dict[str, object]:
        return {"hasNextPage": False}


@dataclass(frozen=True)
class NextPage:
    end_cursor: str
    has_next_page: ClassVar[bool] = True

    def to_dict(self) -> dict[str, object]:
        return {"hasNextPage": True, "endCursor": self.end_cursor}


PageInfo = Union[NoNextPage, NextPage]


@dataclass(frozen=True)
class Row:
    values: SortValues
    stored: StoredEntity


@dataclass
class CursorPage:
    items: list[StoredEntity]
    next_cursor: Cursor | None
    prev_cursor: Cursor | None
    total_items: int


def validate_limit(limit: int | None) -> None:
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0):
        raise InvalidRequestError(f"limit must be a positive integer, got {limit!r}")


def collect_rows(
    store: EntityStoreProtocol,
    order: Sequence[EntityOrder],
    filter_expr: EntityFilter | None = None,
    full_text: FullTextFilter | None = None,
    *,
    default_namespace: str = "default",
    cancel: CancellationToken | None = None,
) -> list[Row]:
    """Scan the store and keep matching entities with their composite sort keys."""
    text_fields = [o.field for o in order]
    rows: list[Row] = []
    for stored in store.scan_entities(filter_expr, cancel=cancel):
        check(cancel)
        projection = project(stored.entity, default_namespace)
        if not matches(projection, filter_expr):
            continue
        if not matches_full_text(projection, full_text, text_fields):
            continue
        values = sort_values(stored.entity, order, stored.ref, default_namespace)
        rows.append(Row(values, stored))
    return rows


def paginate_cursor(rows: list[Row], cursor: Cursor, limit: int) -> CursorPage:
    """Return the page after ``cursor.order_field_values`` in the cursor's direction.

    A backward cursor walks the mirrored order, and the batch is flipped back to
    forward order before it is returned.
    """
    validate_limit(limit)
    order = cursor.order_fields
    reverse = cursor.is_previous
    boundary = cursor.order_field_values

    candidates = (
        rows
        if boundary is None
        else [r for r in rows if compare_values(r.values, boundary, order, reverse=reverse) > 0]
    )
    key = sort_key(order, reverse=reverse)
    batch = heapq.nsmallest(limit + 1, candidates, key=lambda r: key(r.values))
    has_more = len(batch) > limit
    batch = batch[:limit]
    if reverse:
        batch.reverse()

    first = cursor.first_sort_field_values
    if first is None and boundary is None and not reverse and batch:
        first = tuple(batch[0].values)
    total = cursor.total_items if cursor.total_items is not None else len(rows)
    base = replace(cursor, first_sort_field_values=first, total_items=total)

    next_cursor: Cursor | None = None
    prev_cursor: Cursor | None = None
    if batch:
        head, tail = tuple(batch[0].values), tuple(batch[-1].values)
        if reverse:
            next_cursor = replace(base, order_field_values=tail, is_previous=False)
            if has_more:
                prev_cursor = replace(base, order_field_values=head, is_previous=True)
        else:
            if has_more:
                next_cursor = replace(base, order_field_values=tail, is_previous=False)
            if first is not None and head != first:
                prev_cursor = replace(base, order_field_values=head, is_previous=True)

    logger.debug(
        "Cursor page: %d items, next=%s prev=%s",
        len(batch),
        next_cursor is not None,
        prev_cursor is not None,
    )
    return CursorPage(
        items=[r.stored for r in batch],
        next_cursor=next_cursor,
        prev_cursor=prev_cursor,
        total_items=total,
    )


def paginate_offset(
    rows: list[Row], order: Sequence[EntityOrder], offset: int, limit: int | None
) -> tuple[list[StoredEntity], bool]:
    """Sort all rows and slice ``[offset, offset + limit)``; report whether more remain."""
    if offset < 0:
        raise InvalidRequestError(f"offset must not be negative, got {offset}")
    validate_limit(limit)
    key = sort_key(order)
    if limit is None:
        ordered = sorted(rows, key=lambda r: key(r.values))[offset:]
        return [r.stored for r in ordered], False
    window = heapq.nsmallest(offset + limit + 1, rows, key=lambda r: key(r.values))[offset:]
    return [r.stored for r in window[:limit]], len(window) > limit
