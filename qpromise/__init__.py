"""
qpromise — Promise engine with forwarding, context preservation and chaining.

Provides:
  - ``Promise`` and its construction helpers (``create_promise``,
    ``promisify``, ``resolved``, ``rejected``)
  - ``attach`` / ``attach_errback`` continuations
  - combinators (``catcher``, ``tap``, ``finally_``, ``all_``, ``amap``,
    ``areduce``, ``afilter`` and friends)
  - ``chain`` pipelines
  - the two process-wide extension points in ``qpromise.config``

The MCP tool surface lives in ``qpromise.server`` and is imported only on
demand.
"""

from . import config
from .bindings import UNBOUND, Snapshot, capture
from .chain import Catch, Chain, Finally, Map, Reduce, Then, chain, catch, map_, reduce_, then
from .combinators import (
    adolist,
    afilter,
    aif,
    alet,
    alet_star,
    all_,
    amap,
    areduce,
    catcher,
    finally_,
    handler_case,
    tap,
    wait,
)
from .errors import (
    ForwardingCycleError,
    InvalidHandlerError,
    InvalidStageError,
    NotAPromiseError,
    PromiseError,
    RejectedValueError,
    UnknownPromiseError,
)
from .promise import (
    Promise,
    PromiseState,
    Values,
    attach,
    attach_errback,
    create_promise,
    ensure_promise,
    is_finished,
    is_promise,
    lookup_forwarded_promise,
    promisify,
    rejected,
    resolved,
)
from .registry import PromiseRegistry

__version__ = "0.1.0"

__all__ = [
    "config",
    "UNBOUND",
    "Snapshot",
    "capture",
    "Catch",
    "Chain",
    "Finally",
    "Map",
    "Reduce",
    "Then",
    "chain",
    "catch",
    "map_",
    "reduce_",
    "then",
    "adolist",
    "afilter",
    "aif",
    "alet",
    "alet_star",
    "all_",
    "amap",
    "areduce",
    "catcher",
    "finally_",
    "handler_case",
    "tap",
    "wait",
    "ForwardingCycleError",
    "InvalidHandlerError",
    "InvalidStageError",
    "NotAPromiseError",
    "PromiseError",
    "RejectedValueError",
    "UnknownPromiseError",
    "Promise",
    "PromiseState",
    "Values",
    "attach",
    "attach_errback",
    "create_promise",
    "ensure_promise",
    "is_finished",
    "is_promise",
    "lookup_forwarded_promise",
    "promisify",
    "rejected",
    "resolved",
    "PromiseRegistry",
]
