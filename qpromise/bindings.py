"""
bindings.py — Snapshot and replay of ambient context variables.

When a continuation is attached, ``wrap()`` records the current value of
every preserved ``ContextVar`` (or ``UNBOUND`` if it has no value).  When
the continuation later runs, possibly from a completely different call
stack, the snapshot installs those values for the duration of the call.

The call always runs inside a *copy* of the invoking context, so whatever
the continuation does to context variables, the invoker's context is the
same afterwards on every exit path, exceptions included.
"""

from __future__ import annotations

import contextvars
import functools
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

from . import config


class _Unbound:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNBOUND"


UNBOUND = _Unbound()


class Snapshot:
    """Ordered ``(variable, value-or-UNBOUND)`` pairs captured at one moment."""

    __slots__ = ("bindings",)

    def __init__(self, bindings: Sequence[Tuple[contextvars.ContextVar, Any]]) -> None:
        self.bindings = tuple(bindings)

    def __repr__(self) -> str:
        inner = ", ".join(f"{var.name}={value!r}" for var, value in self.bindings)
        return f"Snapshot({inner})"

    def context(self) -> contextvars.Context:
        """Build the context a captured continuation should run in."""
        ctx = contextvars.copy_context()
        unbound = [var for var, value in self.bindings if value is UNBOUND and var in ctx]
        if unbound:
            # A ContextVar cannot be unset, so rebuild without it.
            fresh = contextvars.Context()
            for var, value in ctx.items():
                if var not in unbound:
                    fresh.run(var.set, value)
            ctx = fresh
        return ctx

    def run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return self.context().run(self._install_and_call, fn, args, kwargs)

    def _install_and_call(
        self, fn: Callable[..., Any], args: Tuple[Any, ...], kwargs: Dict[str, Any]
    ) -> Any:
        for var, value in self.bindings:
            if value is not UNBOUND:
                var.set(value)
        return fn(*args, **kwargs)


def capture(variables: Optional[Iterable[contextvars.ContextVar]] = None) -> Snapshot:
    """Snapshot *variables* (default: the configured preserved bindings)."""
    if variables is None:
        variables = config.get_preserved_bindings()
    return Snapshot([(var, var.get(UNBOUND)) for var in variables])


def wrap(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Bind *fn* to the current values of the preserved bindings.

    Returns *fn* itself when nothing is configured for preservation.
    """
    variables = config.get_preserved_bindings()
    if not variables:
        return fn
    snapshot = capture(variables)

    @functools.wraps(fn)
    def wrapped(*args: Any, **kwargs: Any) -> Any:
        return snapshot.run(fn, *args, **kwargs)

    wrapped.snapshot = snapshot
    return wrapped
