"""Instrumenter – opt-in fail-soft variant.

Extractor and listener bugs are logged instead of reaching the
instrumented call site.  Enable with ``InstrumenterBuilder.set_fail_soft``
or ``OTEL_INSTRUMENTATION_FAIL_SOFT=true``.
"""
from __future__ import annotations

from typing import TypeVar

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context

from mp_instrumentation.instrumenter.instrumenter import Instrumenter
from mp_instrumentation.observability.logging import get_logger

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

_log = get_logger(__name__)

_NOT_STARTED_KEY = otel_context.create_key("mp-instrumentation-not-started")


def was_started(context: Context) -> bool:
    """``False`` for contexts returned by a failed fail-soft ``start``."""
    return not otel_context.get_value(_NOT_STARTED_KEY, context)


class FailSoftInstrumenter(Instrumenter[REQUEST, RESPONSE]):
    """:class:`Instrumenter` that logs and absorbs exceptions from its own pipeline."""

    def should_start(self, parent_context: Context, request: REQUEST) -> bool:
        try:
            return super().should_start(parent_context, request)
        except Exception:
            _log.warning(
                "instrumenter_should_start_failed",
                instrumentation=self.instrumentation_name,
                exc_info=True,
            )
            return False

    def start(self, parent_context: Context, request: REQUEST) -> Context:
        try:
            return super().start(parent_context, request)
        except Exception:
            _log.warning(
                "instrumenter_start_failed",
                instrumentation=self.instrumentation_name,
                exc_info=True,
            )
            return otel_context.set_value(_NOT_STARTED_KEY, True, parent_context)

    def end(
        self,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        if not was_started(context):
            return
        try:
            super().end(context, request, response, error)
        except Exception:
            _log.warning(
                "instrumenter_end_failed",
                instrumentation=self.instrumentation_name,
                exc_info=True,
            )
            span = trace.get_current_span(context)
            if span.is_recording():
                span.end()


__all__ = ["FailSoftInstrumenter", "was_started"]
