"""
registry.py — Named promises that outside callers can settle and inspect.

Agents talking to the MCP server cannot hold ``Promise`` objects, so the
server keeps them here under caller-chosen ids.  Each entry is a real
promise: continuations and combinators built on it behave exactly as they
would in-process.

``peek_promise()`` is a non-destructive status check returning
``(found, status, payload)`` where status is ``"pending"``, ``"resolved"``
or ``"rejected"``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from .errors import UnknownPromiseError
from .promise import Promise

logger = logging.getLogger(__name__)


def _payload(promise: Promise) -> Any:
    if promise.errored:
        return str(promise.error)
    values = promise.values
    if len(values) == 1:
        return values[0]
    return list(values)


class PromiseRegistry:
    """In-process map of promise id -> ``Promise``.

    Multiple sessions share a single registry; namespacing ids (for example
    ``"{session_id}:{key}"``) is the caller's responsibility.
    """

    def __init__(self) -> None:
        self._promises: Dict[str, Promise] = {}

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def register(self, promise_id: str, promise: Optional[Promise] = None) -> Promise:
        """Store *promise* (default: a new pending one) under *promise_id*.

        Re-registering an id replaces the previous entry.
        """
        if promise is None:
            promise = Promise(name=promise_id)
        self._promises[promise_id] = promise
        logger.debug("registered promise %s", promise_id)
        return promise

    def get(self, promise_id: str) -> Promise:
        try:
            return self._promises[promise_id]
        except KeyError:
            raise UnknownPromiseError(promise_id) from None

    def resolve(self, promise_id: str, *values: Any) -> bool:
        """Finish *promise_id* with *values*.

        Returns:
            True if the promise existed; False if the id is unknown.
        """
        promise = self._promises.get(promise_id)
        if promise is None:
            return False
        promise.finish(*values)
        return True

    def reject(self, promise_id: str, error: Any) -> bool:
        """Signal *error* on *promise_id*; False if the id is unknown."""
        promise = self._promises.get(promise_id)
        if promise is None:
            return False
        promise.signal_error(error)
        return True

    def peek_promise(self, promise_id: str) -> Tuple[bool, Optional[str], Any]:
        """Non-destructive status check.

        Returns:
            (found, status, payload): ``found`` is False when the promise
            ID is unknown; ``payload`` is None while pending.
        """
        promise = self._promises.get(promise_id)
        if promise is None:
            return False, None, None
        if promise.finished:
            return True, "resolved", _payload(promise)
        if promise.errored:
            return True, "rejected", _payload(promise)
        return True, "pending", None

    def drop(self, promise_id: str) -> bool:
        return self._promises.pop(promise_id, None) is not None

    def clear(self) -> int:
        """Forget every entry, returning how many there were."""
        count = len(self._promises)
        self._promises.clear()
        return count

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._promises)

    def __contains__(self, promise_id: object) -> bool:
        return promise_id in self._promises
