"""Structured error types for Catalogia."""

from __future__ import annotations


class CatalogError(Exception):
    """Base error for all Catalogia errors."""


class NotFoundError(CatalogError):
    """Raised when a uid or entity reference does not resolve to an entity."""

    def __init__(self, what: str, ident: str) -> None:
        self.what = what
        self.ident = ident
        super().__init__(f"No {what} '{ident}' found")


class InvalidCursorError(CatalogError):
    """Raised when a pagination token fails to decode or verify."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid cursor: {reason}")


class InvalidFilterError(CatalogError):
    """Raised for malformed filter trees."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidRequestError(CatalogError):
    """Raised for invalid request parameters (limits, offsets, references)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class UnauthorizedError(CatalogError):
    """Raised by an authorizer to deny an operation."""

    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(message)


class StorageUnavailableError(CatalogError):
    """Raised when the entity store fails to serve a call."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage unavailable during {operation}: {detail}")


class QueryCancelledError(CatalogError):
    """Raised when a cancellation token fires or its deadline passes."""

    def __init__(self, reason: str = "cancelled") -> None:
        self.reason = reason
        super().__init__(f"Query {reason}")
