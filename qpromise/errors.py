"""
errors.py — Exceptions raised by qpromise itself.

Errors raised *inside* continuations are never wrapped: they are stored on
the relevant promise exactly as raised and matched by handlers with
``isinstance``.  The classes below only cover misuse of the library and the
few places where a non-exception rejection has to cross into code that
requires a real exception (asyncio futures, the MCP surface).
"""

from __future__ import annotations

from typing import Any


class PromiseError(Exception):
    """Base class for errors raised by the promise engine."""


class InvalidStageError(PromiseError, TypeError):
    """A pipeline was given something that is not a stage descriptor."""


class InvalidHandlerError(PromiseError, TypeError):
    """A catcher handler is not a ``(category, fn)`` pair."""


class NotAPromiseError(PromiseError, TypeError):
    """A promise was required but some other object was supplied."""


class ForwardingCycleError(PromiseError):
    """A promise was finished with itself (directly or through forwards)."""


class UnknownPromiseError(PromiseError, KeyError):
    """A registry lookup named a promise id that was never registered."""


class RejectedValueError(PromiseError):
    """Carries a rejection reason that is not an exception instance."""

    def __init__(self, reason: Any) -> None:
        super().__init__(reason)
        self.reason = reason


def as_exception(error: Any) -> BaseException:
    """Return *error* unchanged if it is an exception, else wrap it."""
    if isinstance(error, BaseException):
        return error
    return RejectedValueError(error)
