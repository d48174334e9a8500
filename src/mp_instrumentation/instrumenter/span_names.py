"""Instrumenter – span names derived from code locations."""
from __future__ import annotations

import threading
import weakref
from typing import Any, Callable


class SpanNames:
    """``"Owner.method"`` span names, cached per owner class."""

    _cache: "weakref.WeakKeyDictionary[type, dict[str, str]]" = weakref.WeakKeyDictionary()
    _lock = threading.Lock()

    @classmethod
    def from_method(cls, owner: type | Any, method_name: str) -> str:
        """Span name for *method_name* on *owner* (a class or an instance of it)."""
        owner_type = owner if isinstance(owner, type) else type(owner)
        with cls._lock:
            names = cls._cache.get(owner_type)
            if names is None:
                names = cls._cache[owner_type] = {}
            name = names.get(method_name)
            if name is None:
                name = names[method_name] = f"{owner_type.__name__}.{method_name}"
        return name

    @staticmethod
    def from_function(fn: Callable[..., Any]) -> str:
        """Qualified name of *fn* with ``<locals>`` segments removed."""
        fn = getattr(fn, "__func__", fn)
        qualname = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)
        return ".".join(part for part in qualname.split(".") if part != "<locals>")


__all__ = ["SpanNames"]
