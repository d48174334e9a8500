"""Observability – metric instrument ports."""
from mp_instrumentation.observability.metrics.noop import NoopMetrics
from mp_instrumentation.observability.metrics.ports import (
    Counter,
    Histogram,
    MetricAttributes,
    MetricAttributeValue,
    Metrics,
)

__all__ = [
    "Counter",
    "Histogram",
    "MetricAttributeValue",
    "MetricAttributes",
    "Metrics",
    "NoopMetrics",
]
