"""Opaque, signed pagination tokens.

A token is ``base64url(payload_json) + "." + base64url(hmac_sha256(payload_json))``.
Tokens round-trip through clients, so decoding treats them as untrusted input:
the signature is checked first, then the payload shape is validated.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from catalogia.errors import CatalogError, InvalidCursorError
from catalogia.filters import EntityFilter, FullTextFilter, filter_to_dict, parse_filter
from catalogia.ordering import EntityOrder

logger = logging.getLogger(__name__)

CURSOR_VERSION = 1


@dataclass(frozen=True)
class Cursor:
    """Everything needed to resume a paginated query.

    ``order_field_values`` holds the boundary row's order field values followed
    by its entity ref; ``None`` means "from the start".
    """

    order_fields: tuple[EntityOrder, ...] = ()
    order_field_values: tuple[str | None, ...] | None = None
    filter: EntityFilter | None = None
    is_previous: bool = False
    full_text_filter: FullTextFilter | None = None
    first_sort_field_values: tuple[str | None, ...] | None = None
    total_items: int | None = None


@dataclass(frozen=True)
class OffsetToken:
    offset: int
    limit: int | None = None


class _OrderPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    field: str
    order: Literal["asc", "desc"]


class _FullTextPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    term: str
    fields: Optional[list[str]] = None


class _CursorPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    v: int
    kind: Literal["query"]
    orderFields: list[_OrderPayload]
    orderFieldValues: Optional[list[Optional[str]]] = None
    filter: Optional[dict[str, Any]] = None
    isPrevious: bool
    fullTextFilter: Optional[_FullTextPayload] = None
    firstSortFieldValues: Optional[list[Optional[str]]] = None
    totalItems: Optional[int] = None


class _OffsetPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    v: int
    kind: Literal["offset"]
    offset: int
    limit: Optional[int] = None


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def _b64decode(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(padded.encode())


class CursorCodec:
    """Encode and decode signed pagination tokens."""

    def __init__(self, key: bytes) -> None:
        if not key:
            raise ValueError("Cursor signing key must not be empty")
        self._key = key

    def _sign(self, raw: bytes) -> bytes:
        return hmac.new(self._key, raw, hashlib.sha256).digest()

    def _seal(self, payload: dict[str, Any]) -> str:
        raw = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()
        return f"{_b64encode(raw)}.{_b64encode(self._sign(raw))}"

    def _open(self, token: str) -> dict[str, Any]:
        if not isinstance(token, str) or token.count(".") != 1:
            raise InvalidCursorError("malformed token")
        body, sig = token.split(".")
        try:
            raw = _b64decode(body)
            signature = _b64decode(sig)
        except (binascii.Error, ValueError):
            raise InvalidCursorError("malformed token encoding")
        if not hmac.compare_digest(signature, self._sign(raw)):
            logger.warning("Rejected pagination token with bad signature")
            raise InvalidCursorError("signature mismatch")
        try:
            payload = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise InvalidCursorError("payload is not JSON")
        if not isinstance(payload, dict):
            raise InvalidCursorError("payload is not an object")
        if payload.get("v") != CURSOR_VERSION:
            raise InvalidCursorError(f"unsupported token version {payload.get('v')!r}")
        return payload

    # --- query cursors ---

    def encode(self, cursor: Cursor) -> str:
        ft = cursor.full_text_filter
        payload: dict[str, Any] = {
            "v": CURSOR_VERSION,
            "kind": "query",
            "orderFields": [o.to_dict() for o in cursor.order_fields],
            "orderFieldValues": (
                list(cursor.order_field_values) if cursor.order_field_values is not None else None
            ),
            "filter": filter_to_dict(cursor.filter),
            "isPrevious": cursor.is_previous,
            "fullTextFilter": (
                {"term": ft.term, "fields": list(ft.fields) if ft.fields is not None else None}
                if ft is not None
                else None
            ),
            "firstSortFieldValues": (
                list(cursor.first_sort_field_values)
                if cursor.first_sort_field_values is not None
                else None
            ),
            "totalItems": cursor.total_items,
        }
        return self._seal(payload)

    def decode(self, token: str) -> Cursor:
        raw = self._open(token)
        try:
            payload = _CursorPayload.model_validate(raw)
        except PydanticValidationError as e:
            raise InvalidCursorError(f"unexpected payload shape ({e.error_count()} errors)")

        try:
            order = tuple(EntityOrder(o.field, o.order) for o in payload.orderFields)
            expr = parse_filter(payload.filter)
        except CatalogError as e:
            raise InvalidCursorError(str(e))

        width = len(order) + 1
        for name, values in (
            ("orderFieldValues", payload.orderFieldValues),
            ("firstSortFieldValues", payload.firstSortFieldValues),
        ):
            if values is not None and len(values) != width:
                raise InvalidCursorError(f"{name} has {len(values)} entries, expected {width}")
        if payload.totalItems is not None and payload.totalItems < 0:
            raise InvalidCursorError("totalItems must not be negative")

        ft = payload.fullTextFilter
        return Cursor(
            order_fields=order,
            order_field_values=(
                tuple(payload.orderFieldValues) if payload.orderFieldValues is not None else None
            ),
            filter=expr,
            is_previous=payload.isPrevious,
            full_text_filter=(
                FullTextFilter(ft.term, tuple(ft.fields) if ft.fields is not None else None)
                if ft is not None
                else None
            ),
            first_sort_field_values=(
                tuple(payload.firstSortFieldValues)
                if payload.firstSortFieldValues is not None
                else None
            ),
            total_items=payload.totalItems,
        )

    # --- offset tokens ---

    def encode_offset(self, token: OffsetToken) -> str:
        return self._seal(
            {"v": CURSOR_VERSION, "kind": "offset", "offset": token.offset, "limit": token.limit}
        )

    def decode_offset(self, token: str) -> OffsetToken:
        raw = self._open(token)
        try:
            payload = _OffsetPayload.model_validate(raw)
        except PydanticValidationError as e:
            raise InvalidCursorError(f"unexpected payload shape ({e.error_count()} errors)")
        if payload.offset < 0 or (payload.limit is not None and payload.limit <= 0):
            raise InvalidCursorError("offset token is out of range")
        return OffsetToken(offset=payload.offset, limit=payload.limit)
