"""
aio.py — Driving promises from an asyncio event loop.

The promise engine never blocks or schedules anything itself.  Installing
``loop_hook(loop)`` as the finish hook makes every settlement dispatch on
the next loop iteration instead of synchronously::

    from qpromise import config
    from qpromise.aio import loop_hook

    config.set_finish_hook(loop_hook(asyncio.get_running_loop()))

``to_future`` and ``from_future`` convert between the two worlds so a
promise can be awaited and an awaitable can feed a promise chain.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from .config import FinishHook, Thunk
from .errors import as_exception
from .promise import Promise


def loop_hook(
    loop: Optional[asyncio.AbstractEventLoop] = None, threadsafe: bool = False
) -> FinishHook:
    """A finish hook that schedules dispatch on *loop*.

    Pass ``threadsafe=True`` when promises are settled from threads other
    than the loop's own.
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    schedule = loop.call_soon_threadsafe if threadsafe else loop.call_soon

    def hook(thunk: Thunk) -> None:
        schedule(thunk)

    return hook


def to_future(
    promise: Promise, loop: Optional[asyncio.AbstractEventLoop] = None
) -> asyncio.Future:
    """Return a future completed from *promise*.

    One value becomes the result directly, no values become ``None`` and
    several become a tuple.  Non-exception rejections are wrapped in
    ``RejectedValueError``.
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    future = loop.create_future()

    def on_success(*values: Any) -> None:
        if future.done():
            return
        if len(values) == 1:
            future.set_result(values[0])
        else:
            future.set_result(values or None)

    def on_error(error: Any) -> None:
        if not future.done():
            future.set_exception(as_exception(error))

    promise.attach(on_success)
    promise.attach_errback(on_error)
    return future


def from_future(future: "asyncio.Future[Any]") -> Promise:
    """Return a promise settled when *future* completes."""
    promise = Promise(name="future")

    def done(fut: "asyncio.Future[Any]") -> None:
        if fut.cancelled():
            promise.signal_error(asyncio.CancelledError())
        elif fut.exception() is not None:
            promise.signal_error(fut.exception())
        else:
            promise.finish(fut.result())

    future.add_done_callback(done)
    return promise
