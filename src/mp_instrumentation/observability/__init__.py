"""Observability – logging and metrics used by the instrumentation pipeline."""

from mp_instrumentation.observability.logging import JsonLoggerFactory, TraceContextProcessor, get_logger
from mp_instrumentation.observability.metrics import Counter, Histogram, Metrics, NoopMetrics

__all__ = [
    "Counter",
    "Histogram",
    "JsonLoggerFactory",
    "Metrics",
    "NoopMetrics",
    "TraceContextProcessor",
    "get_logger",
]
