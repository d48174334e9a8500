"""Observability – structlog processors and get_logger helper.

``TraceContextProcessor`` — injects the active span's trace/span IDs into log events.
``get_logger(name)`` — returns a bound structlog logger.
"""
from __future__ import annotations

from typing import Any

import structlog
from opentelemetry import trace


class TraceContextProcessor:
    """structlog processor that injects the current span's identifiers.

    Injects the following fields when a valid span is active:

    * ``trace_id`` (32 lowercase hex chars)
    * ``span_id`` (16 lowercase hex chars)

    Values already present on the event are left untouched.

    Usage::

        import structlog
        from mp_instrumentation.observability.logging import TraceContextProcessor

        structlog.configure(processors=[TraceContextProcessor(), ...])
    """

    def __call__(
        self,
        logger: Any,           # noqa: ARG002
        method_name: str,      # noqa: ARG002
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            event_dict.setdefault("trace_id", format(span_context.trace_id, "032x"))
            event_dict.setdefault("span_id", format(span_context.span_id, "016x"))
        return event_dict


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


__all__ = ["TraceContextProcessor", "get_logger"]
