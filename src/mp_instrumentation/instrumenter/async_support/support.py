"""Async support – AsyncOperationEndSupport, the per-call-site adapter."""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from opentelemetry.context import Context

from mp_instrumentation.instrumenter.async_support.kinds import AsyncKind
from mp_instrumentation.instrumenter.async_support.registry import AsyncOperationEndStrategies
from mp_instrumentation.instrumenter.async_support.strategy import (
    AsyncOperationEndStrategy,
    try_to_get_response,
)
from mp_instrumentation.instrumenter.instrumenter import Instrumenter

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")
ASYNC = TypeVar("ASYNC")


class AsyncOperationEndSupport(Generic[REQUEST, RESPONSE]):
    """Ends an operation now, or once its asynchronous result settles.

    The strategy is resolved once, at :meth:`create` time, from the
    declared async kind of the call site.
    """

    def __init__(
        self,
        instrumenter: Instrumenter[REQUEST, RESPONSE],
        response_type: Any,
        async_kind: AsyncKind | None,
        strategy: AsyncOperationEndStrategy | None,
    ) -> None:
        self._instrumenter = instrumenter
        self._response_type = response_type
        self._async_kind = async_kind
        self._strategy = strategy

    @classmethod
    def create(
        cls,
        instrumenter: Instrumenter[REQUEST, RESPONSE],
        response_type: Any,
        async_type: AsyncKind | type | Any | None,
        registry: AsyncOperationEndStrategies,
    ) -> "AsyncOperationEndSupport[REQUEST, RESPONSE]":
        """*async_type* is an :class:`AsyncKind` or a declared type to classify."""
        kind = async_type if isinstance(async_type, AsyncKind) else AsyncKind.from_type(async_type)
        return cls(instrumenter, response_type, kind, registry.resolve_strategy(kind))

    @property
    def async_kind(self) -> AsyncKind | None:
        return self._async_kind

    @property
    def strategy(self) -> AsyncOperationEndStrategy | None:
        return self._strategy

    def async_end(
        self,
        context: Context,
        request: REQUEST,
        async_value: ASYNC,
        error: BaseException | None,
    ) -> ASYNC:
        """End the operation for *async_value*; use the returned value in its place.

        * *error* set: ended immediately with that error.
        * a strategy matches the runtime value: ending is delegated to it.
        * otherwise: ended immediately with *async_value* as the response
          when it is an instance of the declared response type.
        """
        if error is not None:
            self._instrumenter.end(context, request, None, error)
            return async_value

        if (
            self._strategy is not None
            and self._async_kind is not None
            and self._async_kind.matches(async_value)
        ):
            return self._strategy.end(self._instrumenter, context, request, async_value, self._response_type)

        self._instrumenter.end(
            context, request, try_to_get_response(self._response_type, async_value), None
        )
        return async_value

    @staticmethod
    def try_to_get_response(response_type: Any, value: Any) -> Any:
        return try_to_get_response(response_type, value)


__all__ = ["AsyncOperationEndSupport"]
