"""Testing fixtures – pytest fixtures for in-memory telemetry."""
try:
    import pytest  # noqa: F401

    from mp_instrumentation.testing.fixtures.telemetry import fake_metrics, frozen_clock, telemetry

except ImportError:
    pass

__all__ = ["fake_metrics", "frozen_clock", "telemetry"]
