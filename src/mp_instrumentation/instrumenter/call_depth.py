"""Instrumenter – CallDepth.

Detects re-entrant calls that represent the same logical operation, e.g.
``send()`` delegating to an overloaded ``send()``.  Only the outermost call
(depth ``0``) should be instrumented.

Usage::

    depth = CallDepth.for_key("my_client.send")
    if depth.get_and_increment() > 0:
        try:
            return inner()
        finally:
            depth.decrement_and_get()
"""
from __future__ import annotations

import contextvars
import threading
from typing import Hashable


class CallDepth:
    """Per-key, per-execution-context nesting counter.

    Backed by a :class:`contextvars.ContextVar`, so each thread and each
    asyncio task sees its own depth.
    """

    _registry: dict[Hashable, "CallDepth"] = {}
    _registry_lock = threading.Lock()

    __slots__ = ("_key", "_var")

    def __init__(self, key: Hashable) -> None:
        self._key = key
        self._var: contextvars.ContextVar[int] = contextvars.ContextVar(f"call_depth[{key!r}]", default=0)

    @classmethod
    def for_key(cls, key: Hashable) -> "CallDepth":
        with cls._registry_lock:
            depth = cls._registry.get(key)
            if depth is None:
                depth = cls._registry[key] = cls(key)
            return depth

    @property
    def key(self) -> Hashable:
        return self._key

    def get(self) -> int:
        return self._var.get()

    def get_and_increment(self) -> int:
        current = self._var.get()
        self._var.set(current + 1)
        return current

    def decrement_and_get(self) -> int:
        current = self._var.get() - 1
        self._var.set(max(current, 0))
        return current

    def __repr__(self) -> str:
        return f"CallDepth({self._key!r}, depth={self.get()})"


__all__ = ["CallDepth"]
