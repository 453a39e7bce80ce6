"""
combinators.py — Higher-order operations built from attach / attach_errback.

Nothing in here touches promise internals; every combinator is a small
arrangement of ``attach``, ``attach_errback``, ``promisify`` and fresh
``Promise`` objects.  Wherever a promise is expected, a plain value (or a
plain sequence, for the collection combinators) is accepted as well.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import InvalidHandlerError
from .promise import (
    Promise,
    Values,
    attach,
    attach_errback,
    ensure_promise,
    is_promise,
    promisify,
    rejected,
    resolved,
    settle_with,
)

Category = Any  # an exception class, a tuple of them, or None for "anything"
Handler = Tuple[Category, Callable[[Any], Any]]


def _first(values: Tuple[Any, ...]) -> Any:
    return values[0] if values else None


def matches(category: Category, error: Any) -> bool:
    """True if *error* belongs to *category* (``None`` matches anything)."""
    return category is None or isinstance(error, category)


def _check_handlers(handlers: Sequence[Any]) -> List[Handler]:
    checked = []
    for handler in handlers:
        if not (isinstance(handler, tuple) and len(handler) == 2 and callable(handler[1])):
            raise InvalidHandlerError(f"expected a (category, fn) pair, got {handler!r}")
        checked.append(handler)
    return checked


# ---------------------------------------------------------------------------
# Error recovery
# ---------------------------------------------------------------------------

def catcher(promise: Any, *handlers: Handler) -> Promise:
    """Route an error to the first handler whose category matches it.

    The matching handler's return value (or the error it raises) becomes
    the outcome.  Unmatched errors and successful values pass through.
    """
    handlers = _check_handlers(handlers)

    def dispatch(error: Any) -> Any:
        for category, handler in handlers:
            if matches(category, error):
                return handler(error)
        return rejected(error)

    return attach_errback(promise, dispatch)


def handler_case(thunk: Callable[[], Any], *handlers: Handler) -> Promise:
    """Run *thunk* and apply ``catcher`` to its outcome, sync errors included."""
    return catcher(promisify(thunk), *handlers)


# ---------------------------------------------------------------------------
# Side effects
# ---------------------------------------------------------------------------

def tap(promise: Any, fn: Callable[..., Any]) -> Promise:
    """Call ``fn(*values)`` for its effect and pass the original values on.

    If *fn* returns a promise, the tap waits for it to finish first.  An
    error raised by *fn* (or its promise) rejects the tap.
    """
    def on_success(*values: Any) -> Any:
        result = fn(*values)
        if is_promise(result):
            return result.attach(lambda *_: Values(*values))
        return Values(*values)

    return attach(promise, on_success)


def finally_(promise: Any, fn: Callable[[], Any]) -> Promise:
    """Run ``fn()`` once *promise* settles either way.

    The result is settled with *fn*'s own return value (or error); the
    source's value or error is not carried through.
    """
    promise = ensure_promise(promise)
    final = Promise()

    def run_final(*_: Any) -> None:
        settle_with(final, fn)

    promise.attach(run_final)
    promise.attach_errback(run_final)
    return final


def wait(promise: Any, fn: Callable[[], Any]) -> Promise:
    """Run ``fn()`` after *promise* finishes, ignoring its values."""
    return attach(promise, lambda *_: fn())


def aif(
    promise: Any,
    when_true: Callable[[], Any],
    when_false: Optional[Callable[[], Any]] = None,
) -> Promise:
    """Branch on the truthiness of a promised value."""
    def branch(*values: Any) -> Any:
        if _first(values):
            return when_true()
        if when_false is not None:
            return when_false()
        return None

    return attach(promise, branch)


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------

def all_(items: Iterable[Any]) -> Promise:
    """Settle with the resolved value of every item, in order.

    Plain values are taken as-is.  The first error reported by any item
    rejects the whole result.
    """
    items = list(items)
    results: List[Any] = list(items)
    pending = [i for i, item in enumerate(items) if is_promise(item)]
    final = Promise(name="all")
    remaining = [len(pending)]

    if not pending:
        final.finish(results)
        return final

    def collector(index: int) -> Callable[..., None]:
        def collect(*values: Any) -> None:
            results[index] = _first(values)
            remaining[0] -= 1
            if remaining[0] == 0:
                final.finish(results)
        return collect

    for index in pending:
        attach(items[index], collector(index)).attach_errback(final.signal_error)
    return final


def amap(fn: Callable[[Any], Any], items: Any) -> Promise:
    """Apply *fn* to every element; *fn* may return promises."""
    def map_all(sequence: Iterable[Any]) -> Promise:
        return all_([promisify(fn, item) for item in sequence])

    return attach(items, map_all)


def areduce(fn: Callable[[Any, Any], Any], items: Any, initial: Any = None) -> Promise:
    """Left fold, waiting for each step before starting the next."""
    def step(item: Any) -> Callable[..., Any]:
        return lambda *acc: fn(_first(acc), item)

    def fold(sequence: Iterable[Any]) -> Promise:
        acc = ensure_promise(initial)
        for item in sequence:
            acc = acc.attach(step(item))
        return acc

    return attach(items, fold)


def afilter(fn: Callable[[Any], Any], items: Any) -> Promise:
    """Keep the elements whose (possibly promised) predicate is truthy."""
    def select(sequence: Iterable[Any]) -> Promise:
        sequence = list(sequence)
        return amap(fn, sequence).attach(
            lambda flags: [item for item, keep in zip(sequence, flags) if keep]
        )

    return attach(items, select)


def alet(**bindings: Any) -> Promise:
    """Resolve several promises at once into a ``{name: value}`` dict."""
    names = list(bindings)
    return all_(bindings[name] for name in names).attach(
        lambda values: dict(zip(names, values))
    )


def alet_star(*steps: Tuple[str, Callable[..., Any]]) -> Promise:
    """Bind names one after another.

    Each step is ``(name, fn)``; ``fn`` is called with the names bound so
    far as keyword arguments and may return a promise.  Settles with the
    dict of all bindings.
    """
    bound: Dict[str, Any] = {}

    def step(name: str, fn: Callable[..., Any]) -> Callable[..., Promise]:
        def store(*values: Any) -> None:
            bound[name] = _first(values)

        return lambda *_: promisify(fn, **bound).attach(store)

    promise = resolved(None)
    for name, fn in steps:
        promise = promise.attach(step(name, fn))
    return promise.attach(lambda *_: dict(bound))


def walk(*thunks: Callable[[], Any]) -> Promise:
    """Run thunks strictly in order; settle with the last one's value."""
    promise = resolved(None)
    for thunk in thunks:
        promise = promise.attach(lambda *_, thunk=thunk: thunk())
    return promise


def adolist(fn: Callable[[Any], Any], items: Any) -> Promise:
    """Call ``fn(item)`` for each item in sequence, for effect only."""
    def run_all(sequence: Iterable[Any]) -> Promise:
        return walk(*[functools.partial(fn, item) for item in sequence]).attach(
            lambda *_: None
        )

    return attach(items, run_all)
