"""Async support – AsyncKind, the families of non-blocking values we can end on."""
from __future__ import annotations

import asyncio
import collections.abc
import concurrent.futures
import enum
import inspect
import typing
from typing import Any


class AsyncKind(str, enum.Enum):
    """A family of asynchronous values with its own completion mechanism."""

    CONCURRENT_FUTURE = "concurrent_future"
    ASYNCIO_FUTURE = "asyncio_future"
    COROUTINE = "coroutine"

    def matches(self, value: Any) -> bool:
        """``True`` if *value* at runtime belongs to this family."""
        if self is AsyncKind.CONCURRENT_FUTURE:
            return isinstance(value, concurrent.futures.Future)
        if self is AsyncKind.ASYNCIO_FUTURE:
            return asyncio.isfuture(value)
        return inspect.iscoroutine(value)

    @classmethod
    def of(cls, value: Any) -> "AsyncKind | None":
        """Classify a runtime value; ``None`` for plain (synchronous) values."""
        for kind in cls:
            if kind.matches(value):
                return kind
        return None

    @classmethod
    def from_type(cls, tp: Any) -> "AsyncKind | None":
        """Map a declared return type (class or generic alias) onto a kind.

        ``Future[int]`` and ``Coroutine[Any, Any, str]`` resolve through
        their origin.  Anything unrecognised, including bare ``Awaitable``,
        gives ``None``.
        """
        if tp is None:
            return None
        origin = typing.get_origin(tp) or tp
        if not isinstance(origin, type):
            return None
        if issubclass(origin, concurrent.futures.Future):
            return cls.CONCURRENT_FUTURE
        if issubclass(origin, asyncio.Future):
            return cls.ASYNCIO_FUTURE
        if issubclass(origin, collections.abc.Coroutine):
            return cls.COROUTINE
        return None


__all__ = ["AsyncKind"]
