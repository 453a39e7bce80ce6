"""
chain.py — Sequential pipelines over promises.

A pipeline is a seed followed by stage descriptors, applied left to right::

    chain(4,
          then(lambda x: x + 7),
          then(lambda x: [3, x, 9]),
          map_(lambda x: x + 1),
          reduce_(lambda acc, x: acc + x, 0))      # -> promise of 26

Stages:

  Then(fn)                  value(s) -> next value or promise
  Map(fn)                   element-wise over a sequence result
  Reduce(fn, initial)       left fold over a sequence result
  Catch(fn, category=None)  handle an error reaching this point
  Finally(fn)               run ``fn()`` on either path; its result
                            replaces the propagated value

Map and Reduce functions may return promises; each result is waited for,
and Reduce awaits every step before starting the next.

An error raised by a Then/Map/Reduce stage skips every later
Then/Map/Reduce until the next Catch or Finally.  Adjacent Catch stages
form one first-match-wins group, so an error raised by one of their
handlers is not offered to its neighbours.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List

from .combinators import Category, amap, areduce, catcher
from .combinators import finally_ as finally_promise
from .errors import InvalidStageError
from .promise import Promise, attach, ensure_promise


@dataclass(frozen=True)
class Then:
    fn: Callable[..., Any]


@dataclass(frozen=True)
class Map:
    fn: Callable[[Any], Any]


@dataclass(frozen=True)
class Reduce:
    fn: Callable[[Any, Any], Any]
    initial: Any = None


@dataclass(frozen=True)
class Catch:
    fn: Callable[[Any], Any]
    category: Category = None


@dataclass(frozen=True)
class Finally:
    fn: Callable[[], Any]


def then(fn: Callable[..., Any]) -> Then:
    return Then(fn)


def map_(fn: Callable[[Any], Any]) -> Map:
    return Map(fn)


def reduce_(fn: Callable[[Any, Any], Any], initial: Any = None) -> Reduce:
    return Reduce(fn, initial)


def catch(fn: Callable[[Any], Any], category: Category = None) -> Catch:
    return Catch(fn, category)


def finally_(fn: Callable[[], Any]) -> Finally:
    return Finally(fn)


def chain(seed: Any, *stages: Any) -> Promise:
    """Apply *stages* to *seed* (a value or a promise); return the result."""
    for stage in stages:
        if not isinstance(stage, (Then, Map, Reduce, Catch, Finally)):
            raise InvalidStageError(f"not a pipeline stage: {stage!r}")

    promise = ensure_promise(seed)
    catches: List[Catch] = []
    for stage in stages:
        if isinstance(stage, Catch):
            catches.append(stage)
            continue
        if catches:
            promise = catcher(promise, *[(c.category, c.fn) for c in catches])
            catches = []
        if isinstance(stage, Then):
            promise = attach(promise, stage.fn)
        elif isinstance(stage, Map):
            promise = amap(stage.fn, promise)
        elif isinstance(stage, Reduce):
            promise = areduce(stage.fn, promise, stage.initial)
        else:
            promise = finally_promise(promise, stage.fn)
    if catches:
        promise = catcher(promise, *[(c.category, c.fn) for c in catches])
    return promise


class Chain:
    """Fluent form of ``chain``; stages are applied when ``promise`` is read.

    ::

        Chain(seed).then(f).map(g).catch(h, KeyError).promise
    """

    def __init__(self, seed: Any) -> None:
        self.seed = seed
        self.stages: List[Any] = []

    def _add(self, stage: Any) -> "Chain":
        self.stages.append(stage)
        return self

    def then(self, fn: Callable[..., Any]) -> "Chain":
        return self._add(Then(fn))

    def map(self, fn: Callable[[Any], Any]) -> "Chain":
        return self._add(Map(fn))

    def reduce(self, fn: Callable[[Any, Any], Any], initial: Any = None) -> "Chain":
        return self._add(Reduce(fn, initial))

    def catch(self, fn: Callable[[Any], Any], category: Category = None) -> "Chain":
        return self._add(Catch(fn, category))

    def finally_(self, fn: Callable[[], Any]) -> "Chain":
        return self._add(Finally(fn))

    @property
    def promise(self) -> Promise:
        return chain(self.seed, *self.stages)
