"""Testing fakes – FakeMetricsRegistry."""
from __future__ import annotations

from mp_instrumentation.observability.metrics.ports import Counter, Histogram, MetricAttributes, Metrics


class _FakeCounter(Counter):
    """In-memory counter that records every ``add()`` call."""

    def __init__(self, name: str, unit: str) -> None:
        self.name = name
        self.unit = unit
        self.calls: list[tuple[float, dict[str, object]]] = []
        self.total: float = 0.0

    def add(self, value: float = 1.0, attributes: MetricAttributes | None = None) -> None:
        self.calls.append((value, dict(attributes or {})))
        self.total += value

    @property
    def call_count(self) -> int:
        return len(self.calls)


class _FakeHistogram(Histogram):
    """In-memory histogram that records every ``record()`` call."""

    def __init__(self, name: str, unit: str) -> None:
        self.name = name
        self.unit = unit
        self.calls: list[tuple[float, dict[str, object]]] = []

    def record(self, value: float, attributes: MetricAttributes | None = None) -> None:
        self.calls.append((value, dict(attributes or {})))

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def values(self) -> list[float]:
        return [v for v, _ in self.calls]

    @property
    def attributes(self) -> list[dict[str, object]]:
        return [a for _, a in self.calls]


class FakeMetricsRegistry(Metrics):
    """In-memory :class:`Metrics` double for listener and supportability tests.

    Usage::

        metrics = FakeMetricsRegistry()
        builder.set_metrics(metrics).add_operation_metrics(http_client_metrics)
        ...
        metrics.assert_histogram_recorded("http.client.request.duration", 1)
    """

    def __init__(self) -> None:
        self._counters: dict[str, _FakeCounter] = {}
        self._histograms: dict[str, _FakeHistogram] = {}

    # ------------------------------------------------------------------
    # Metrics port
    # ------------------------------------------------------------------

    def counter(self, name: str, description: str = "", unit: str = "") -> _FakeCounter:
        if name not in self._counters:
            self._counters[name] = _FakeCounter(name, unit)
        return self._counters[name]

    def histogram(self, name: str, description: str = "", unit: str = "s") -> _FakeHistogram:
        if name not in self._histograms:
            self._histograms[name] = _FakeHistogram(name, unit)
        return self._histograms[name]

    # ------------------------------------------------------------------
    # Assertion helpers
    # ------------------------------------------------------------------

    def get_counter(self, name: str) -> _FakeCounter | None:
        return self._counters.get(name)

    def get_histogram(self, name: str) -> _FakeHistogram | None:
        return self._histograms.get(name)

    def assert_counter_incremented(self, name: str, n: int = 1) -> None:
        """Assert that *name* counter was incremented exactly *n* times."""
        counter = self._counters.get(name)
        assert counter is not None, f"Counter '{name}' was never created"
        assert counter.call_count == n, (
            f"Counter '{name}' was incremented {counter.call_count} time(s), expected {n}"
        )

    def assert_histogram_recorded(self, name: str, n: int = 1) -> None:
        """Assert that *name* histogram received exactly *n* measurements."""
        histogram = self._histograms.get(name)
        assert histogram is not None, f"Histogram '{name}' was never created"
        assert histogram.call_count == n, (
            f"Histogram '{name}' recorded {histogram.call_count} value(s), expected {n}"
        )

    def reset(self) -> None:
        """Clear all recorded metrics (useful between test cases)."""
        self._counters.clear()
        self._histograms.clear()


__all__ = ["FakeMetricsRegistry"]
