"""Catalogia: query engine for a software entity catalog."""

__version__ = "0.1.0"

from catalogia.ancestry import AncestryItem, AncestryResult
from catalogia.cancellation import CancellationToken
from catalogia.catalog import AllowAllAuthorizer, Authorizer, EntitiesCatalog
from catalogia.config import CatalogConfig
from catalogia.cursor import Cursor, CursorCodec
from catalogia.errors import (
    CatalogError,
    InvalidCursorError,
    InvalidFilterError,
    InvalidRequestError,
    NotFoundError,
    QueryCancelledError,
    StorageUnavailableError,
    UnauthorizedError,
)
from catalogia.facets import FacetCount
from catalogia.filters import AllOf, AnyOf, EntityFilter, FullTextFilter, Leaf, Not, parse_filter
from catalogia.ordering import EntityOrder
from catalogia.pagination import NextPage, NoNextPage, PageInfo
from catalogia.projection import FieldSelector
from catalogia.refs import EntityRef, parse_entity_ref
from catalogia.storage import EntityStoreProtocol, Repository, StoredEntity, open_repository
from catalogia.types import (
    EntitiesBatchRequest,
    EntitiesBatchResponse,
    EntitiesRequest,
    EntitiesResponse,
    EntityFacetsRequest,
    EntityFacetsResponse,
    EntityPagination,
    QueryEntitiesCursorRequest,
    QueryEntitiesInitialRequest,
    QueryEntitiesResponse,
)

__all__ = [
    "__version__",
    "EntitiesCatalog",
    "Authorizer",
    "AllowAllAuthorizer",
    "CatalogConfig",
    "CancellationToken",
    "Cursor",
    "CursorCodec",
    "EntityFilter",
    "Leaf",
    "AllOf",
    "AnyOf",
    "Not",
    "FullTextFilter",
    "parse_filter",
    "EntityOrder",
    "FieldSelector",
    "EntityRef",
    "parse_entity_ref",
    "PageInfo",
    "NextPage",
    "NoNextPage",
    "FacetCount",
    "AncestryItem",
    "AncestryResult",
    "EntityStoreProtocol",
    "Repository",
    "StoredEntity",
    "open_repository",
    "EntitiesRequest",
    "EntitiesResponse",
    "EntityPagination",
    "EntitiesBatchRequest",
    "EntitiesBatchResponse",
    "QueryEntitiesInitialRequest",
    "QueryEntitiesCursorRequest",
    "QueryEntitiesResponse",
    "EntityFacetsRequest",
    "EntityFacetsResponse",
    "CatalogError",
    "NotFoundError",
    "InvalidCursorError",
    "InvalidFilterError",
    "InvalidRequestError",
    "UnauthorizedError",
    "StorageUnavailableError",
    "QueryCancelledError",
]
