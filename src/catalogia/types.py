"""Request and response shapes for the entities catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from catalogia.facets import FacetCount
from catalogia.filters import EntityFilter, FullTextFilter
from catalogia.ordering import EntityOrder
from catalogia.pagination import NoNextPage, PageInfo
from catalogia.projection import FieldSelector

# Filters may be given as expression trees or in their wire shape.
FilterInput = Union[EntityFilter, dict[str, Any], None]


@dataclass
class EntityPagination:
    limit: int | None = None
    offset: int | None = None
    after: str | None = None


@dataclass
class EntitiesRequest:
    filter: FilterInput = None
    fields: FieldSelector | None = None
    order: list[EntityOrder] | None = None
    pagination: EntityPagination | None = None
    authorization_token: str | None = None


@dataclass
class EntitiesResponse:
    entities: list[dict[str, Any]] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=NoNextPage)

    def to_dict(self) -> dict[str, Any]:
        return {"entities": self.entities, "pageInfo": self.page_info.to_dict()}


@dataclass
class EntitiesBatchRequest:
    entity_refs: list[str]
    filter: FilterInput = None
    fields: FieldSelector | None = None
    authorization_token: str | None = None


@dataclass
class EntitiesBatchResponse:
    items: list[dict[str, Any] | None] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"items": self.items}


@dataclass
class QueryEntitiesInitialRequest:
    filter: FilterInput = None
    order_fields: list[EntityOrder] | None = None
    full_text_filter: FullTextFilter | None = None
    limit: int | None = None
    fields: FieldSelector | None = None
    authorization_token: str | None = None


@dataclass
class QueryEntitiesCursorRequest:
    cursor: str
    limit: int | None = None
    fields: FieldSelector | None = None
    authorization_token: str | None = None


QueryEntitiesRequest = Union[QueryEntitiesInitialRequest, QueryEntitiesCursorRequest]


@dataclass
class QueryEntitiesResponse:
    items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None
    prev_cursor: str | None = None
    total_items: int = 0

    def to_dict(self) -> dict[str, Any]:
        page_info: dict[str, str] = {}
        if self.next_cursor is not None:
            page_info["nextCursor"] = self.next_cursor
        if self.prev_cursor is not None:
            page_info["prevCursor"] = self.prev_cursor
        return {"items": self.items, "pageInfo": page_info, "totalItems": self.total_items}


@dataclass
class EntityFacetsRequest:
    facets: list[str]
    filter: FilterInput = None
    authorization_token: str | None = None


@dataclass
class EntityFacetsResponse:
    facets: dict[str, list[FacetCount]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"facets": {k: [c.to_dict() for c in v] for k, v in self.facets.items()}}
