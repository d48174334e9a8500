"""Async support – AsyncOperationEndStrategies registry.

Reads (``resolve_strategy``) take no lock: writers publish a fresh tuple,
so a reader always sees a complete snapshot.

Usage::

    with AsyncOperationEndStrategies.with_defaults() as registry:
        registry.register(MyDeferredEndStrategy())
        support = AsyncOperationEndSupport.create(instrumenter, Response, AsyncKind.ASYNCIO_FUTURE, registry)
"""
from __future__ import annotations

import threading
from typing import Iterable

from mp_instrumentation.instrumenter.async_support.coroutines import CoroutineEndStrategy
from mp_instrumentation.instrumenter.async_support.futures import (
    AsyncioFutureEndStrategy,
    ConcurrentFutureEndStrategy,
)
from mp_instrumentation.instrumenter.async_support.kinds import AsyncKind
from mp_instrumentation.instrumenter.async_support.strategy import AsyncOperationEndStrategy
from mp_instrumentation.kernel.errors import RegistryClosedError
from mp_instrumentation.observability.logging import get_logger

_log = get_logger(__name__)


class AsyncOperationEndStrategies:
    """Ordered, copy-on-write list of strategies; the first match wins."""

    def __init__(self, strategies: Iterable[AsyncOperationEndStrategy] = ()) -> None:
        self._lock = threading.Lock()
        self._strategies: tuple[AsyncOperationEndStrategy, ...] = ()
        self._closed = False
        for strategy in strategies:
            self.register(strategy)

    @classmethod
    def with_defaults(cls, *, capture_experimental_span_attributes: bool = False) -> "AsyncOperationEndStrategies":
        """Registry pre-loaded with the future and coroutine strategies."""
        return cls(
            [
                ConcurrentFutureEndStrategy(capture_experimental_span_attributes=capture_experimental_span_attributes),
                AsyncioFutureEndStrategy(capture_experimental_span_attributes=capture_experimental_span_attributes),
                CoroutineEndStrategy(capture_experimental_span_attributes=capture_experimental_span_attributes),
            ]
        )

    @property
    def strategies(self) -> tuple[AsyncOperationEndStrategy, ...]:
        return self._strategies

    @property
    def closed(self) -> bool:
        return self._closed

    def register(self, strategy: AsyncOperationEndStrategy) -> None:
        if strategy is None:
            raise TypeError("strategy must not be None")
        with self._lock:
            if self._closed:
                raise RegistryClosedError()
            self._strategies = (*self._strategies, strategy)
        _log.debug("async_strategy_registered", strategy=repr(strategy))

    def unregister(self, strategy: AsyncOperationEndStrategy) -> None:
        """Remove *strategy*; unknown strategies are ignored."""
        with self._lock:
            remaining = list(self._strategies)
            if strategy not in remaining:
                return
            remaining.remove(strategy)
            self._strategies = tuple(remaining)
        _log.debug("async_strategy_unregistered", strategy=repr(strategy))

    def resolve_strategy(self, kind: AsyncKind | None) -> AsyncOperationEndStrategy | None:
        if kind is None or self._closed:
            return None
        for strategy in self._strategies:
            if strategy.supports(kind):
                return strategy
        return None

    def shutdown(self) -> None:
        """Drop every strategy; later registrations raise :class:`RegistryClosedError`."""
        with self._lock:
            self._closed = True
            self._strategies = ()
        _log.debug("async_strategy_registry_shutdown")

    def __enter__(self) -> "AsyncOperationEndStrategies":
        return self

    def __exit__(self, *_: object) -> None:
        self.shutdown()

    def __len__(self) -> int:
        return len(self._strategies)


__all__ = ["AsyncOperationEndStrategies"]
