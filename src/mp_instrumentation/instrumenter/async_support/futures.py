"""Async support – strategies for ``concurrent.futures`` and ``asyncio`` futures.

Both future families expose the same ``done()`` / ``cancelled()`` /
``exception()`` / ``result()`` / ``add_done_callback()`` surface, so they
share one finalisation routine.  Already-settled futures are ended
synchronously without registering a callback.
"""
from __future__ import annotations

from typing import Any, TypeVar

from opentelemetry.context import Context

from mp_instrumentation.instrumenter.async_support.kinds import AsyncKind
from mp_instrumentation.instrumenter.async_support.strategy import (
    AsyncOperationEndStrategy,
    try_to_get_response,
)
from mp_instrumentation.instrumenter.instrumenter import Instrumenter

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")


class _FutureEndStrategy(AsyncOperationEndStrategy):
    kind: AsyncKind

    def supports(self, kind: AsyncKind) -> bool:
        return kind is self.kind

    def end(
        self,
        instrumenter: Instrumenter[REQUEST, RESPONSE],
        context: Context,
        request: REQUEST,
        async_value: Any,
        response_type: Any,
    ) -> Any:
        if async_value.done():
            self._finish(instrumenter, context, request, async_value, response_type)
            return async_value

        def _on_done(future: Any) -> None:
            self._finish(instrumenter, context, request, future, response_type)

        async_value.add_done_callback(_on_done)
        return async_value

    def _finish(
        self,
        instrumenter: Instrumenter[REQUEST, RESPONSE],
        context: Context,
        request: REQUEST,
        future: Any,
        response_type: Any,
    ) -> None:
        # cancelled() must be checked first: exception() raises on a cancelled future
        if future.cancelled():
            self._end_cancelled(instrumenter, context, request)
            return
        error = future.exception()
        if error is not None:
            instrumenter.end(context, request, None, error)
            return
        instrumenter.end(context, request, try_to_get_response(response_type, future.result()), None)


class ConcurrentFutureEndStrategy(_FutureEndStrategy):
    """Ends on completion of a :class:`concurrent.futures.Future`.

    The deferred ``end`` runs on the thread that settles the future.
    """

    kind = AsyncKind.CONCURRENT_FUTURE


class AsyncioFutureEndStrategy(_FutureEndStrategy):
    """Ends on completion of an :class:`asyncio.Future` or :class:`asyncio.Task`.

    The deferred ``end`` runs as a done-callback on the future's event loop.
    """

    kind = AsyncKind.ASYNCIO_FUTURE


__all__ = ["AsyncioFutureEndStrategy", "ConcurrentFutureEndStrategy"]
