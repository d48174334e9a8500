"""Async support – AsyncOperationEndStrategy port and shared helpers."""
from __future__ import annotations

import abc
import typing
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.context import Context

from mp_instrumentation.instrumenter.async_support.kinds import AsyncKind
from mp_instrumentation.instrumenter.instrumenter import Instrumenter

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

CANCELED_ATTRIBUTE = "async.canceled"


def try_to_get_response(response_type: Any, value: Any) -> Any:
    """Return *value* if it is an instance of *response_type*, else ``None``.

    ``None`` as *response_type* accepts any value.  Generic aliases are
    checked against their origin; types ``isinstance`` cannot handle give
    ``None`` rather than an error.
    """
    if response_type is None:
        return value
    check = typing.get_origin(response_type) or response_type
    try:
        return value if isinstance(value, check) else None
    except TypeError:
        return None


class AsyncOperationEndStrategy(abc.ABC):
    """Defers ``Instrumenter.end`` until an async value of one :class:`AsyncKind` settles."""

    def __init__(self, *, capture_experimental_span_attributes: bool = False) -> None:
        self._capture_experimental_span_attributes = capture_experimental_span_attributes

    @abc.abstractmethod
    def supports(self, kind: AsyncKind) -> bool: ...

    @abc.abstractmethod
    def end(
        self,
        instrumenter: Instrumenter[REQUEST, RESPONSE],
        context: Context,
        request: REQUEST,
        async_value: Any,
        response_type: Any,
    ) -> Any:
        """End the operation when *async_value* completes.

        Returns *async_value* itself or an equivalent wrapper that callers
        must use in its place.
        """

    def _end_cancelled(
        self,
        instrumenter: Instrumenter[REQUEST, RESPONSE],
        context: Context,
        request: REQUEST,
    ) -> None:
        if self._capture_experimental_span_attributes:
            trace.get_current_span(context).set_attribute(CANCELED_ATTRIBUTE, True)
        instrumenter.end(context, request, None, None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = ["CANCELED_ATTRIBUTE", "AsyncOperationEndStrategy", "try_to_get_response"]
