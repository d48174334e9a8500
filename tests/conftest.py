from mp_instrumentation.testing.fixtures import fake_metrics, frozen_clock, telemetry  # noqa: F401
