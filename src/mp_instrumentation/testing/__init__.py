"""Testing support – in-memory telemetry, fakes and fixtures.

Import in your ``conftest.py``::

    pytest_plugins = ["mp_instrumentation.testing.fixtures"]
"""

from mp_instrumentation.testing.fakes import FakeMetricsRegistry
from mp_instrumentation.testing.telemetry import InMemoryTelemetry

__all__ = ["FakeMetricsRegistry", "InMemoryTelemetry"]
