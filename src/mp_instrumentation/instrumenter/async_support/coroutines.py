"""Async support – CoroutineEndStrategy."""
from __future__ import annotations

import asyncio
from typing import Any, Coroutine, TypeVar

from opentelemetry import context as otel_context
from opentelemetry.context import Context

from mp_instrumentation.instrumenter.async_support.kinds import AsyncKind
from mp_instrumentation.instrumenter.async_support.strategy import (
    AsyncOperationEndStrategy,
    try_to_get_response,
)
from mp_instrumentation.instrumenter.instrumenter import Instrumenter

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")


class CoroutineEndStrategy(AsyncOperationEndStrategy):
    """Wraps a coroutine so the operation ends once it has been awaited.

    A coroutine is inert until awaited, so there is no "already done" fast
    path: the returned wrapper must replace the original.  While the
    wrapped coroutine runs, the operation's context is the current one.
    """

    def supports(self, kind: AsyncKind) -> bool:
        return kind is AsyncKind.COROUTINE

    def end(
        self,
        instrumenter: Instrumenter[REQUEST, RESPONSE],
        context: Context,
        request: REQUEST,
        async_value: Coroutine[Any, Any, Any],
        response_type: Any,
    ) -> Coroutine[Any, Any, Any]:
        return self._wrap(instrumenter, context, request, async_value, response_type)

    async def _wrap(
        self,
        instrumenter: Instrumenter[REQUEST, RESPONSE],
        context: Context,
        request: REQUEST,
        coro: Coroutine[Any, Any, Any],
        response_type: Any,
    ) -> Any:
        token = otel_context.attach(context)
        closing = False
        try:
            result = await coro
        except GeneratorExit:
            closing = True
            self._end_cancelled(instrumenter, context, request)
            raise
        except asyncio.CancelledError:
            self._end_cancelled(instrumenter, context, request)
            raise
        except BaseException as exc:
            instrumenter.end(context, request, None, exc)
            raise
        finally:
            # close() may come from another execution context, where the token cannot be reset
            if not closing or otel_context.get_current() is context:
                otel_context.detach(token)
        instrumenter.end(context, request, try_to_get_response(response_type, result), None)
        return result


__all__ = ["CoroutineEndStrategy"]
