"""Testing fixtures – telemetry, fake_metrics, frozen_clock."""
from __future__ import annotations

try:
    import pytest

    @pytest.fixture
    def telemetry():
        """Pytest fixture: an :class:`InMemoryTelemetry`, shut down after the test."""
        from mp_instrumentation.testing.telemetry import InMemoryTelemetry

        telemetry = InMemoryTelemetry()
        yield telemetry
        telemetry.shutdown()

    @pytest.fixture
    def fake_metrics():
        from mp_instrumentation.testing.fakes import FakeMetricsRegistry

        return FakeMetricsRegistry()

    @pytest.fixture
    def frozen_clock():
        """Pytest fixture: a nanosecond clock pinned at ``1_000``."""
        from mp_instrumentation.kernel.time import FrozenClock

        return FrozenClock(1_000)

except ImportError:
    pass

__all__ = ["fake_metrics", "frozen_clock", "telemetry"]
