"""
server.py — MCP server exposing named promises as tools.

Lets agents coordinate through promises without sharing a process:

  create   register a pending promise under an id.
  resolve  finish a promise with a JSON value.
  reject   reject a promise with an error message.
  peek     non-destructive status check.
  all      register a promise that settles once every listed one has.
  flush    forget every registered promise.

Usage:
    python -m qpromise.server          # stdio transport (default)
    python -m qpromise.server --sse    # SSE transport
    qpromise-mcp                       # via installed entry-point

The advertised server name can be overridden with ``QPROMISE_MCP_NAME``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP

from .combinators import all_
from .errors import RejectedValueError
from .registry import PromiseRegistry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# MCP server instance
# ---------------------------------------------------------------------------
mcp = FastMCP(
    os.environ.get("QPROMISE_MCP_NAME", "qpromise"),
    instructions=(
        "Named promises for coordinating agent tasks. "
        "Call `create` to register a pending promise, `resolve` or `reject` "
        "to settle it, `peek` to check its status without consuming it, "
        "`all` to join several promises, and `flush` when the task is done."
    ),
)

# Module-level registry shared across all sessions.
_promise_registry = PromiseRegistry()


def _safe_serialize(obj: Any) -> Any:
    """Best-effort JSON-safe conversion."""
    if isinstance(obj, (str, int, float, bool, type(None))):
        return obj
    if isinstance(obj, dict):
        return {str(k): _safe_serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_safe_serialize(i) for i in obj]
    return str(obj)


def _status(promise_id: str) -> Dict[str, Any]:
    found, status, payload = _promise_registry.peek_promise(promise_id)
    if not found:
        return {"found": False, "promise_id": promise_id}
    return {
        "found": True,
        "promise_id": promise_id,
        "status": status,
        "payload": _safe_serialize(payload),
    }


def _unknown(promise_id: str) -> Dict[str, Any]:
    return {"error": f"unknown promise id: {promise_id}"}


# ---------------------------------------------------------------------------
# Tool: create
# ---------------------------------------------------------------------------
@mcp.tool()
def create(promise_id: str) -> Dict[str, Any]:
    """Register a pending promise under *promise_id*.

    Re-using an id replaces the previous promise.

    Returns:
        ``{"found": True, "promise_id": str, "status": "pending", "payload": None}``
    """
    logger.info("create %s", promise_id)
    _promise_registry.register(promise_id)
    return _status(promise_id)


# ---------------------------------------------------------------------------
# Tool: resolve
# ---------------------------------------------------------------------------
@mcp.tool()
def resolve(promise_id: str, value: Any = None) -> Dict[str, Any]:
    """Finish *promise_id* with *value*.

    Settling an already-settled promise has no effect; the returned status
    shows the outcome that stands.

    Returns:
        The promise status (see ``peek``), or ``{"error": str}`` for an
        unknown id.
    """
    logger.info("resolve %s", promise_id)
    if not _promise_registry.resolve(promise_id, value):
        return _unknown(promise_id)
    return _status(promise_id)


# ---------------------------------------------------------------------------
# Tool: reject
# ---------------------------------------------------------------------------
@mcp.tool()
def reject(promise_id: str, message: str) -> Dict[str, Any]:
    """Reject *promise_id* with an error carrying *message*.

    Returns:
        The promise status (see ``peek``), or ``{"error": str}`` for an
        unknown id.
    """
    logger.info("reject %s", promise_id)
    if not _promise_registry.reject(promise_id, RejectedValueError(message)):
        return _unknown(promise_id)
    return _status(promise_id)


# ---------------------------------------------------------------------------
# Tool: peek
# ---------------------------------------------------------------------------
@mcp.tool()
def peek(promise_id: str) -> Dict[str, Any]:
    """Non-destructive status check.

    Returns:
        ``{"found": False, "promise_id": str}`` for an unknown id, else
        ``{"found": True, "promise_id": str, "status": "pending" |
        "resolved" | "rejected", "payload": Any}``.
    """
    return _status(promise_id)


# ---------------------------------------------------------------------------
# Tool: all
# ---------------------------------------------------------------------------
@mcp.tool(name="all")
def all_promises(promise_ids: List[str], result_id: str) -> Dict[str, Any]:
    """Register *result_id* as the join of *promise_ids*.

    The joined promise resolves with the list of values in the given order
    once every listed promise has resolved, or rejects with the first
    rejection.

    Returns:
        The status of *result_id*, or ``{"error": str}`` if any listed id
        is unknown.
    """
    logger.info("all %s -> %s", promise_ids, result_id)
    missing = [pid for pid in promise_ids if pid not in _promise_registry]
    if missing:
        return _unknown(", ".join(missing))
    joined = all_(_promise_registry.get(pid) for pid in promise_ids)
    _promise_registry.register(result_id, joined)
    return _status(result_id)


# ---------------------------------------------------------------------------
# Tool: flush
# ---------------------------------------------------------------------------
@mcp.tool()
def flush() -> Dict[str, Any]:
    """Forget every registered promise.

    Returns:
        ``{"status": "flushed", "cleared_count": int}``
    """
    cleared = _promise_registry.clear()
    logger.info("flushed %d promise(s)", cleared)
    return {"status": "flushed", "cleared_count": cleared}


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
def main() -> None:
    """Run the MCP server (stdio transport by default)."""
    transport = "stdio"
    if "--sse" in sys.argv:
        transport = "sse"
    mcp.run(transport=transport)


if __name__ == "__main__":
    main()
