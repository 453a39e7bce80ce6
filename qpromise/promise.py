"""
promise.py — The promise entity: state machine, dispatch and forwarding.

A ``Promise`` starts *pending* and moves exactly once to one of:

  FINISHED   settled with an ordered tuple of values (``finish``)
  ERRORED    settled with an error (``signal_error``)
  FORWARDED  superseded by another promise it was finished with; every
             continuation moves onto that promise and all later calls are
             delegated to the end of the forward chain

Continuations are attached with ``attach`` (success) and
``attach_errback`` (error).  Both return a *new* promise driven only by
what the continuation does.  Settling hands ``run`` to the configured
finish hook (``config.get_finish_hook()``), which is the one place where
execution may be deferred; attaching runs the registry synchronously so a
continuation attached to an already-settled promise fires immediately.

Multiple values travel as a tuple.  A continuation that wants to settle
its derived promise with several values returns ``Values(a, b, ...)``;
any other return value (tuples included) is a single value.
"""

from __future__ import annotations

import enum
import functools
import logging
from typing import Any, Callable, List, Optional, Tuple

from . import bindings, config
from .errors import ForwardingCycleError, NotAPromiseError

logger = logging.getLogger(__name__)

Resolve = Callable[..., None]
Reject = Callable[[Any], None]


class PromiseState(enum.Enum):
    PENDING = "pending"
    FORWARDED = "forwarded"
    FINISHED = "finished"
    ERRORED = "errored"


class Values(tuple):
    """An explicit multiple-value result: ``return Values(1, 2, 3)``."""

    def __new__(cls, *values: Any) -> "Values":
        return super().__new__(cls, values)

    def __repr__(self) -> str:
        return "Values(" + ", ".join(repr(v) for v in self) + ")"


def as_values(result: Any) -> Tuple[Any, ...]:
    """Normalise a continuation's return value into a settlement tuple."""
    if isinstance(result, Values):
        return tuple(result)
    return (result,)


class Promise:
    """A value or error that may not exist yet.

    State lives in private attributes; use the read-only properties to
    inspect it and the operations below to change it.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self._name = name
        self._state = PromiseState.PENDING
        self._callbacks: List[Callable[..., Any]] = []
        self._errbacks: List[Tuple[Promise, Optional[Callable[[Any], Any]]]] = []
        self._forward: Optional[Promise] = None
        self._values: Tuple[Any, ...] = ()
        self._error: Any = None

    def __repr__(self) -> str:
        label = f" {self._name!r}" if self._name else ""
        return f"<Promise{label} {self._state.value} at {id(self):#x}>"

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def state(self) -> PromiseState:
        return self._state

    @property
    def forwarded(self) -> bool:
        return self._forward is not None

    @property
    def finished(self) -> bool:
        return self.lookup_forwarded()._state is PromiseState.FINISHED

    @property
    def errored(self) -> bool:
        return self.lookup_forwarded()._state is PromiseState.ERRORED

    @property
    def settled(self) -> bool:
        return self.finished or self.errored

    @property
    def values(self) -> Tuple[Any, ...]:
        """Settled values; empty unless ``finished``."""
        return self.lookup_forwarded()._values

    @property
    def error(self) -> Any:
        """Stored error; ``None`` unless ``errored``."""
        return self.lookup_forwarded()._error

    def lookup_forwarded(self) -> "Promise":
        """Follow forward links to the promise that really holds the state."""
        promise = self
        while promise._forward is not None:
            promise = promise._forward
        return promise

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def finish(self, *values: Any) -> None:
        """Settle with *values*, or adopt the outcome of a leading promise.

        Has no effect unless the promise is still pending.
        """
        if self._state is not PromiseState.PENDING:
            logger.debug("ignoring finish on %r", self)
            return
        if values and isinstance(values[0], Promise):
            self._forward_to(values[0])
            return
        self._values = values
        self._state = PromiseState.FINISHED
        logger.debug("%r finished with %d value(s)", self, len(values))
        _schedule(self)

    def signal_error(self, error: Any) -> None:
        """Settle the end of the forward chain with *error*."""
        promise = self.lookup_forwarded()
        if promise._state is not PromiseState.PENDING:
            logger.debug("ignoring signal_error on %r", promise)
            return
        promise._error = error
        promise._state = PromiseState.ERRORED
        logger.debug("%r errored with %r", promise, error)
        _schedule(promise)

    def reset(self) -> None:
        """Drop all continuations and any outcome, back to pending."""
        promise = self.lookup_forwarded()
        promise._callbacks = []
        promise._errbacks = []
        promise._values = ()
        promise._error = None
        promise._state = PromiseState.PENDING
        logger.debug("%r reset", promise)

    def _forward_to(self, target: "Promise") -> None:
        target = target.lookup_forwarded()
        if target is self:
            self.signal_error(ForwardingCycleError(f"{self!r} was finished with itself"))
            return
        target._callbacks.extend(self._callbacks)
        target._errbacks.extend(self._errbacks)
        self._callbacks = []
        self._errbacks = []
        self._forward = target
        self._state = PromiseState.FORWARDED
        logger.debug("%r forwarded to %r", self, target)
        _schedule(target)

    # ------------------------------------------------------------------
    # Continuations
    # ------------------------------------------------------------------

    def attach(self, fn: Callable[..., Any]) -> "Promise":
        """Run ``fn(*values)`` on success; errors skip *fn* and propagate.

        Returns a promise settled with *fn*'s result, or with the error it
        raised, or with the source's error.
        """
        derived = Promise()
        source = self.lookup_forwarded()
        source._errbacks.append((derived, None))
        source._callbacks.append(functools.partial(settle_with, derived, bindings.wrap(fn)))
        source.run()
        return derived

    def attach_errback(self, fn: Callable[[Any], Any]) -> "Promise":
        """Run ``fn(error)`` on error; success values pass through untouched.

        A stored error is replayed to every errback attached until the
        promise is reset.
        """
        derived = Promise()
        source = self.lookup_forwarded()
        source._errbacks.append((derived, bindings.wrap(fn)))
        source._callbacks.append(derived.finish)
        source.run()
        return derived

    def run(self) -> None:
        """Dispatch pending continuations for the current outcome, if any."""
        if self._state is PromiseState.ERRORED:
            # Success continuations can never fire now.
            self._callbacks = []
            if not self._errbacks:
                return
            errbacks, self._errbacks = self._errbacks, []
            for derived, handler in errbacks:
                if handler is None:
                    derived.signal_error(self._error)
                else:
                    settle_with(derived, handler, self._error)
        elif self._state is PromiseState.FINISHED:
            self._errbacks = []
            callbacks, self._callbacks = self._callbacks, []
            for callback in callbacks:
                callback(*self._values)


def _schedule(promise: Promise) -> None:
    config.get_finish_hook()(promise.run)


def settle_with(promise: Promise, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Promise:
    """Call *fn* and settle *promise* with its result or the error it raised."""
    try:
        result = fn(*args, **kwargs)
    except Exception as exc:
        promise.signal_error(exc)
    else:
        promise.finish(*as_values(result))
    return promise


# ---------------------------------------------------------------------------
# Construction & conversion
# ---------------------------------------------------------------------------

def create_promise(
    initializer: Callable[[Resolve, Reject], Any], name: Optional[str] = None
) -> Promise:
    """Create a promise and hand its ``resolve``/``reject`` to *initializer*.

    The initializer runs synchronously; if it raises, the promise is
    rejected with that error.
    """
    promise = Promise(name=name)

    def resolve(*values: Any) -> None:
        promise.finish(*values)

    def reject(error: Any) -> None:
        promise.signal_error(error)

    try:
        initializer(resolve, reject)
    except Exception as exc:
        reject(exc)
    return promise


def resolved(*values: Any) -> Promise:
    promise = Promise()
    promise.finish(*values)
    return promise


def rejected(error: Any) -> Promise:
    promise = Promise()
    promise.signal_error(error)
    return promise


def is_promise(obj: Any) -> bool:
    return isinstance(obj, Promise)


def _require_promise(obj: Any) -> Promise:
    if not isinstance(obj, Promise):
        raise NotAPromiseError(f"expected a Promise, got {type(obj).__name__}")
    return obj


def is_finished(promise: Promise) -> bool:
    return _require_promise(promise).finished


def lookup_forwarded_promise(promise: Promise) -> Promise:
    return _require_promise(promise).lookup_forwarded()


def ensure_promise(value: Any) -> Promise:
    """Return *value* if it is a promise, else a promise finished with it."""
    if isinstance(value, Promise):
        return value
    return resolved(value)


def promisify(fn: Any, *args: Any, **kwargs: Any) -> Promise:
    """Run *fn* now and express its outcome as a promise.

    A returned promise is passed back as-is; a raised error becomes a
    rejected promise; anything else becomes a finished one (``Values``
    keeps its multiplicity).  A non-callable *fn* given without arguments
    is treated as that outcome directly.
    """
    if not callable(fn) and not args and not kwargs:
        if isinstance(fn, Promise):
            return fn
        return resolved(*as_values(fn))
    try:
        result = fn(*args, **kwargs)
    except Exception as exc:
        return rejected(exc)
    if isinstance(result, Promise):
        return result
    return resolved(*as_values(result))


def attach(promise: Any, fn: Callable[..., Any]) -> Promise:
    """``promise.attach(fn)``; a plain value is passed to *fn* right away."""
    if isinstance(promise, Promise):
        return promise.attach(fn)
    return promisify(fn, promise)


def attach_errback(promise: Any, fn: Callable[[Any], Any]) -> Promise:
    return ensure_promise(promise).attach_errback(fn)
