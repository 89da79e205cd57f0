"""EntitiesCatalog: the query surface over an entity store."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from catalogia.ancestry import AncestryResult, traverse_ancestry
from catalogia.cancellation import CancellationToken, check
from catalogia.config import CatalogConfig
from catalogia.cursor import Cursor, CursorCodec, OffsetToken
from catalogia.errors import InvalidRequestError, NotFoundError
from catalogia.facets import compute_facets
from catalogia.filters import EntityFilter, matches, parse_filter
from catalogia.ordering import parse_order
from catalogia.pagination import (
    NextPage,
    NoNextPage,
    collect_rows,
    paginate_cursor,
    paginate_offset,
    validate_limit,
)
from catalogia.projection import FieldSelector, apply_fields
from catalogia.refs import parse_entity_ref
from catalogia.search import project
from catalogia.storage import EntityStoreProtocol
from catalogia.types import (
    EntitiesBatchRequest,
    EntitiesBatchResponse,
    EntitiesRequest,
    EntitiesResponse,
    EntityFacetsRequest,
    EntityFacetsResponse,
    FilterInput,
    QueryEntitiesCursorRequest,
    QueryEntitiesInitialRequest,
    QueryEntitiesRequest,
    QueryEntitiesResponse,
)

logger = logging.getLogger(__name__)


class Authorizer(Protocol):
    """Decides whether a token may perform an action. Raises UnauthorizedError to deny."""

    def authorize(self, action: str, token: str | None, resource_ref: str | None = None) -> None:
        ...


class AllowAllAuthorizer:
    def authorize(self, action: str, token: str | None, resource_ref: str | None = None) -> None:
        return None


class EntitiesCatalog:
    """Filter, sort, paginate, aggregate and traverse catalog entities.

    Usage:
        catalog = EntitiesCatalog(Repository(), CatalogConfig(cursor_secret="s3cret"))
        page = catalog.query_entities(QueryEntitiesInitialRequest(limit=10))
    """

    def __init__(
        self,
        store: EntityStoreProtocol,
        config: CatalogConfig | None = None,
        *,
        authorizer: Authorizer | None = None,
    ) -> None:
        self._store = store
        self._config = config or CatalogConfig()
        self._authorizer = authorizer or AllowAllAuthorizer()
        self._codec = CursorCodec(self._config.cursor_key)

    @property
    def store(self) -> EntityStoreProtocol:
        return self._store

    @property
    def codec(self) -> CursorCodec:
        return self._codec

    def _filter(self, value: FilterInput) -> EntityFilter | None:
        return parse_filter(value)

    def _project(self, entity: dict[str, Any], fields: FieldSelector | None) -> dict[str, Any]:
        return apply_fields(entity, FieldSelector.parse(fields))

    # --- entities ---

    def entities(
        self,
        request: EntitiesRequest | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> EntitiesResponse:
        """Filtered, ordered entities with offset pagination."""
        request = request or EntitiesRequest()
        self._authorizer.authorize("catalog.entity.read", request.authorization_token)
        expr = self._filter(request.filter)
        order = parse_order(request.order)
        pagination = request.pagination

        offset, limit = 0, None
        if pagination is not None:
            if pagination.after is not None and pagination.offset is not None:
                raise InvalidRequestError("pagination.after cannot be combined with offset")
            if pagination.after is not None:
                token = self._codec.decode_offset(pagination.after)
                offset, limit = token.offset, token.limit
            elif pagination.offset is not None:
                offset = pagination.offset
            if pagination.limit is not None:
                limit = pagination.limit
        validate_limit(limit)

        rows = collect_rows(
            self._store,
            order,
            expr,
            default_namespace=self._config.default_namespace,
            cancel=cancel,
        )
        items, has_more = paginate_offset(rows, order, offset, limit)
        page_info = (
            NextPage(self._codec.encode_offset(OffsetToken(offset + len(items), limit)))
            if has_more
            else NoNextPage()
        )
        logger.debug("entities: %d of %d matching rows", len(items), len(rows))
        return EntitiesResponse(
            entities=[self._project(s.entity, request.fields) for s in items],
            page_info=page_info,
        )

    def entities_batch(
        self,
        request: EntitiesBatchRequest,
        *,
        cancel: CancellationToken | None = None,
    ) -> EntitiesBatchResponse:
        """Resolve refs by position; unknown or filtered-out refs become None."""
        self._authorizer.authorize("catalog.entity.read", request.authorization_token)
        expr = self._filter(request.filter)
        refs = [
            parse_entity_ref(r, default_namespace=self._config.default_namespace)
            for r in request.entity_refs
        ]
        found = self._store.get_entities_by_refs(refs)

        items: list[dict[str, Any] | None] = []
        for ref in refs:
            check(cancel)
            stored = found.get(ref.canonical)
            if stored is None:
                items.append(None)
            elif expr is not None and not matches(
                project(stored.entity, self._config.default_namespace), expr
            ):
                items.append(None)
            else:
                items.append(self._project(stored.entity, request.fields))
        return EntitiesBatchResponse(items=items)

    # --- cursor pagination ---

    def query_entities(
        self,
        request: QueryEntitiesRequest,
        *,
        cancel: CancellationToken | None = None,
    ) -> QueryEntitiesResponse:
        """Keyset pagination driven by opaque cursors."""
        self._authorizer.authorize("catalog.entity.read", request.authorization_token)
        limit = request.limit if request.limit is not None else self._config.default_query_limit
        validate_limit(limit)

        if isinstance(request, QueryEntitiesCursorRequest):
            cursor = self._codec.decode(request.cursor)
        elif isinstance(request, QueryEntitiesInitialRequest):
            cursor = Cursor(
                order_fields=tuple(parse_order(request.order_fields)),
                filter=self._filter(request.filter),
                full_text_filter=request.full_text_filter,
            )
        else:
            raise InvalidRequestError(f"Unsupported request type {type(request).__name__}")

        rows = collect_rows(
            self._store,
            cursor.order_fields,
            cursor.filter,
            cursor.full_text_filter,
            default_namespace=self._config.default_namespace,
            cancel=cancel,
        )
        page = paginate_cursor(rows, cursor, limit)
        return QueryEntitiesResponse(
            items=[self._project(s.entity, request.fields) for s in page.items],
            next_cursor=self._codec.encode(page.next_cursor) if page.next_cursor else None,
            prev_cursor=self._codec.encode(page.prev_cursor) if page.prev_cursor else None,
            total_items=page.total_items,
        )

    # --- thin dispatch ---

    def remove_entity_by_uid(self, uid: str, *, authorization_token: str | None = None) -> None:
        self._authorizer.authorize("catalog.entity.delete", authorization_token)
        if not self._store.delete_entity_by_uid(uid):
            raise NotFoundError("entity with uid", uid)
        logger.info("Removed entity %s", uid)

    def entity_ancestry(
        self,
        entity_ref: str,
        *,
        authorization_token: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> AncestryResult:
        root = parse_entity_ref(entity_ref, default_namespace=self._config.default_namespace)
        self._authorizer.authorize("catalog.entity.read", authorization_token, root.canonical)
        return traverse_ancestry(
            self._store,
            root,
            default_namespace=self._config.default_namespace,
            cancel=cancel,
        )

    def facets(
        self,
        request: EntityFacetsRequest,
        *,
        cancel: CancellationToken | None = None,
    ) -> EntityFacetsResponse:
        self._authorizer.authorize("catalog.entity.read", request.authorization_token)
        expr = self._filter(request.filter)
        facets = compute_facets(
            self._store.scan_entities(expr, cancel=cancel),
            list(request.facets),
            expr,
            default_namespace=self._config.default_namespace,
            cancel=cancel,
        )
        return EntityFacetsResponse(facets=facets)
