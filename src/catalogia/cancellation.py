"""Cooperative cancellation for long-running queries."""

from __future__ import annotations

import threading
import time

from catalogia.errors import QueryCancelledError


class CancellationToken:
    """A flag checked between entities, with an optional monotonic deadline."""

    def __init__(self, timeout_s: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout_s if timeout_s is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise QueryCancelledError("cancelled")
        if self.expired:
            raise QueryCancelledError("timed out")


def check(cancel: CancellationToken | None) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled()
