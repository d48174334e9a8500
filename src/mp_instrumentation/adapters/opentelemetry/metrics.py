"""OpenTelemetry adapter – OtelMetrics."""
from __future__ import annotations

from typing import Any

from opentelemetry import metrics
from opentelemetry.metrics import MeterProvider

from mp_instrumentation.observability.metrics import Counter, Histogram, MetricAttributes, Metrics


class _OtelCounter(Counter):
    def __init__(self, counter: Any) -> None:
        self._c = counter

    def add(self, value: float = 1.0, attributes: MetricAttributes | None = None) -> None:
        self._c.add(value, attributes=attributes)


class _OtelHistogram(Histogram):
    def __init__(self, hist: Any) -> None:
        self._h = hist

    def record(self, value: float, attributes: MetricAttributes | None = None) -> None:
        self._h.record(value, attributes=attributes)


class OtelMetrics(Metrics):
    """:class:`Metrics` backed by an OpenTelemetry ``Meter``.

    Without an explicit *meter_provider* the global provider is used, so
    instruments created before SDK setup still report once it is installed.
    """

    def __init__(
        self,
        meter_name: str = "mp_instrumentation",
        meter_provider: MeterProvider | None = None,
        version: str | None = None,
    ) -> None:
        self._meter = metrics.get_meter(meter_name, version, meter_provider=meter_provider)

    def counter(self, name: str, description: str = "", unit: str = "") -> Counter:
        return _OtelCounter(self._meter.create_counter(name, unit=unit, description=description))

    def histogram(self, name: str, description: str = "", unit: str = "s") -> Histogram:
        return _OtelHistogram(self._meter.create_histogram(name, unit=unit, description=description))


__all__ = ["OtelMetrics"]
