"""
tests/test_server.py — Smoke tests for the MCP tool functions in server.py.

These tests call the underlying tool functions directly (bypassing the MCP
transport layer) to verify request/response semantics without requiring a
running MCP server.
"""

import os
import sys

import pytest

# mcp requires Python >= 3.10
if sys.version_info < (3, 10):
    pytest.skip("mcp requires Python >= 3.10", allow_module_level=True)

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, REPO_ROOT)

from qpromise import config
from qpromise.server import (
    _promise_registry,
    _safe_serialize,
    all_promises,
    create,
    flush,
    peek,
    reject,
    resolve,
)


@pytest.fixture(autouse=True)
def reset_state():
    """Reset the shared registry and engine config before each test."""
    config.reset()
    _promise_registry.clear()
    yield
    _promise_registry.clear()
    config.reset()


# ---------------------------------------------------------------------------
# create / peek
# ---------------------------------------------------------------------------

class TestCreateAndPeek:
    def test_create_returns_pending(self):
        result = create(promise_id="p1")
        assert result["found"] is True
        assert result["status"] == "pending"
        assert result["payload"] is None

    def test_create_registers_promise(self):
        create(promise_id="p2")
        assert "p2" in _promise_registry

    def test_peek_unknown(self):
        result = peek(promise_id="missing")
        assert result == {"found": False, "promise_id": "missing"}

    def test_peek_after_create(self):
        create(promise_id="p3")
        assert peek(promise_id="p3")["status"] == "pending"


# ---------------------------------------------------------------------------
# resolve / reject
# ---------------------------------------------------------------------------

class TestSettle:
    def test_resolve_sets_payload(self):
        create(promise_id="job")
        result = resolve(promise_id="job", value={"rows": 3})
        assert result["status"] == "resolved"
        assert result["payload"] == {"rows": 3}

    def test_resolve_unknown_returns_error(self):
        result = resolve(promise_id="ghost", value=1)
        assert "error" in result

    def test_reject_sets_message(self):
        create(promise_id="job")
        result = reject(promise_id="job", message="timeout upstream")
        assert result["status"] == "rejected"
        assert result["payload"] == "timeout upstream"

    def test_reject_unknown_returns_error(self):
        assert "error" in reject(promise_id="ghost", message="x")

    def test_settlement_is_once_only(self):
        create(promise_id="job")
        resolve(promise_id="job", value="first")
        result = reject(promise_id="job", message="too late")
        assert result["status"] == "resolved"
        assert result["payload"] == "first"


# ---------------------------------------------------------------------------
# all
# ---------------------------------------------------------------------------

class TestAll:
    def test_all_pending_until_every_input_resolves(self):
        create(promise_id="a")
        create(promise_id="b")
        assert all_promises(promise_ids=["a", "b"], result_id="ab")["status"] == "pending"
        resolve(promise_id="b", value=2)
        assert peek(promise_id="ab")["status"] == "pending"
        resolve(promise_id="a", value=1)
        result = peek(promise_id="ab")
        assert result["status"] == "resolved"
        assert result["payload"] == [1, 2]

    def test_all_rejects_on_first_rejection(self):
        create(promise_id="a")
        create(promise_id="b")
        all_promises(promise_ids=["a", "b"], result_id="ab")
        reject(promise_id="a", message="a failed")
        result = peek(promise_id="ab")
        assert result["status"] == "rejected"
        assert result["payload"] == "a failed"

    def test_all_unknown_input(self):
        create(promise_id="a")
        result = all_promises(promise_ids=["a", "nope"], result_id="x")
        assert "nope" in result["error"]
        assert "x" not in _promise_registry

    def test_all_of_nothing_resolves(self):
        result = all_promises(promise_ids=[], result_id="empty")
        assert result["status"] == "resolved"
        assert result["payload"] == []


# ---------------------------------------------------------------------------
# flush / helpers
# ---------------------------------------------------------------------------

class TestFlush:
    def test_flush_counts(self):
        create(promise_id="a")
        create(promise_id="b")
        result = flush()
        assert result == {"status": "flushed", "cleared_count": 2}
        assert len(_promise_registry) == 0

    def test_flush_empty(self):
        assert flush()["cleared_count"] == 0


class TestSafeSerialize:
    def test_nested(self):
        assert _safe_serialize({"a": (1, 2), 3: [None]}) == {"a": [1, 2], "3": [None]}

    def test_unknown_object_stringified(self):
        assert _safe_serialize(ValueError("x")) == "x"
