"""
config.py — The two process-wide extension points of the promise engine.

1. The *preserved bindings*: the ``contextvars.ContextVar`` objects whose
   values are captured when a continuation is attached and re-installed
   when it runs (see ``bindings.py``).
2. The *finish hook*: a one-argument callable receiving a zero-argument
   dispatch thunk every time a promise settles.  The default runs the
   thunk before the settling call returns; an event-loop integration
   replaces it with something that schedules the thunk instead (see
   ``aio.loop_hook``).

Both are read at use time, so installing a new value affects every promise
settled or attached afterwards.  Install once at startup, or per test with
the ``preserve()`` / ``finish_hook()`` context managers, and call
``reset()`` to return to the defaults.
"""

from __future__ import annotations

import contextvars
import logging
import threading
from collections import deque
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, Tuple

logger = logging.getLogger(__name__)

Thunk = Callable[[], None]
FinishHook = Callable[[Thunk], None]


_dispatch = threading.local()


def default_finish_hook(thunk: Thunk) -> None:
    """Run the dispatch thunk before returning to the outermost caller.

    Settlements triggered while a dispatch is already running on this
    thread are queued and drained by that outer call, so stack depth stays
    constant however long the continuation chain is.
    """
    queue = getattr(_dispatch, "queue", None)
    if queue is None:
        queue = _dispatch.queue = deque()
    queue.append(thunk)
    if getattr(_dispatch, "draining", False):
        return
    _dispatch.draining = True
    try:
        while queue:
            queue.popleft()()
    finally:
        _dispatch.draining = False
        queue.clear()


_preserved_bindings: Tuple[contextvars.ContextVar, ...] = ()
_finish_hook: FinishHook = default_finish_hook


# ---------------------------------------------------------------------------
# Preserved bindings
# ---------------------------------------------------------------------------

def get_preserved_bindings() -> Tuple[contextvars.ContextVar, ...]:
    return _preserved_bindings


def set_preserved_bindings(variables: Iterable[contextvars.ContextVar]) -> None:
    """Replace the set of context variables preserved across dispatch."""
    global _preserved_bindings
    variables = tuple(variables)
    for var in variables:
        if not isinstance(var, contextvars.ContextVar):
            raise TypeError(f"expected a ContextVar, got {type(var).__name__}")
    _preserved_bindings = variables
    logger.debug("preserved bindings set to %s", [v.name for v in variables])


@contextmanager
def preserve(*variables: contextvars.ContextVar) -> Iterator[None]:
    """Preserve *variables* for the duration of the ``with`` block."""
    previous = _preserved_bindings
    set_preserved_bindings(variables)
    try:
        yield
    finally:
        set_preserved_bindings(previous)


# ---------------------------------------------------------------------------
# Finish hook
# ---------------------------------------------------------------------------

def get_finish_hook() -> FinishHook:
    return _finish_hook


def set_finish_hook(hook: FinishHook) -> None:
    """Install *hook* as the deferred-execution hook for all promises."""
    global _finish_hook
    if not callable(hook):
        raise TypeError("finish hook must be callable")
    _finish_hook = hook
    logger.debug("finish hook set to %r", hook)


@contextmanager
def finish_hook(hook: FinishHook) -> Iterator[None]:
    """Install *hook* for the duration of the ``with`` block."""
    previous = _finish_hook
    set_finish_hook(hook)
    try:
        yield
    finally:
        set_finish_hook(previous)


def reset() -> None:
    """Restore both extension points to their defaults."""
    set_preserved_bindings(())
    set_finish_hook(default_finish_hook)
