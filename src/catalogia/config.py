"""Configuration for the Catalogia query engine."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Shared by every config built without a secret, so cursors verify across catalogs.
_PROCESS_KEY = secrets.token_bytes(32)


@dataclass
class CatalogConfig:
    """Configuration for the entities catalog."""

    cursor_secret: str | None = None
    default_namespace: str = "default"
    default_query_limit: int = 20
    scan_batch_size: int = 1000
    _cursor_key: bytes = field(default=b"", init=False, repr=False)

    def __post_init__(self) -> None:
        if self.default_query_limit <= 0:
            raise ValueError("default_query_limit must be positive")
        if self.scan_batch_size <= 0:
            raise ValueError("scan_batch_size must be positive")
        if not self.default_namespace:
            raise ValueError("default_namespace must not be empty")
        if self.cursor_secret:
            self._cursor_key = self.cursor_secret.encode()
        else:
            logger.warning(
                "No cursor secret configured; using a per-process secret. "
                "Pagination tokens will not survive a restart."
            )
            self._cursor_key = _PROCESS_KEY

    @property
    def cursor_key(self) -> bytes:
        return self._cursor_key
