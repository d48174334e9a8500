"""Testing fakes – in-memory doubles for the library's ports."""
from mp_instrumentation.testing.fakes.metrics import FakeMetricsRegistry

__all__ = ["FakeMetricsRegistry"]
