"""Instrumenter – SupportabilityMetrics.

Counts spans the pipeline decided not to create, so that over-eager
suppression shows up in dashboards rather than as silently missing spans.
"""
from __future__ import annotations

import threading
from collections import Counter as _Tally

from opentelemetry.trace import SpanKind

from mp_instrumentation.observability.logging import get_logger
from mp_instrumentation.observability.metrics import Metrics, NoopMetrics

_log = get_logger(__name__)

SUPPRESSED_SPANS_METRIC = "instrumenter.suppressed_spans"


class SupportabilityMetrics:
    """Records suppressed spans per ``(instrumentation name, kind)``."""

    def __init__(self, metrics: Metrics | None = None) -> None:
        self._counter = (metrics or NoopMetrics()).counter(
            SUPPRESSED_SPANS_METRIC,
            description="Spans not created because an ancestor already represents the operation",
            unit="{span}",
        )
        self._lock = threading.Lock()
        self._tally: _Tally[tuple[str, str]] = _Tally()

    def record_suppressed_span(self, instrumentation_name: str, kind: SpanKind) -> None:
        with self._lock:
            self._tally[(instrumentation_name, kind.name)] += 1
        self._counter.add(1, {"instrumentation.name": instrumentation_name, "span.kind": kind.name})
        _log.debug("span_suppressed", instrumentation=instrumentation_name, span_kind=kind.name)

    def suppressed_count(self, instrumentation_name: str, kind: SpanKind) -> int:
        with self._lock:
            return self._tally[(instrumentation_name, kind.name)]

    def snapshot(self) -> dict[tuple[str, str], int]:
        with self._lock:
            return dict(self._tally)


__all__ = ["SUPPRESSED_SPANS_METRIC", "SupportabilityMetrics"]
