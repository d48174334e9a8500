"""Instrumenter – helpers not meant for everyday instrumentation code."""
from __future__ import annotations

from typing import TypeVar

from opentelemetry.context import Context

from mp_instrumentation.instrumenter.instrumenter import Instrumenter

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")


def start_and_end(
    instrumenter: Instrumenter[REQUEST, RESPONSE],
    parent_context: Context,
    request: REQUEST,
    response: RESPONSE | None,
    error: BaseException | None,
    start_time: int,
    end_time: int,
) -> Context:
    """Record an operation whose start and end times (epoch nanoseconds) are already known.

    Extractors run exactly once each, in the same order as a regular
    ``start``/``end`` pair.  Context propagation is not applied.
    """
    return instrumenter._start_and_end(parent_context, request, response, error, start_time, end_time)


__all__ = ["start_and_end"]
