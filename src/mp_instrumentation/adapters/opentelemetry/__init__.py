"""OpenTelemetry adapter – metrics."""
from mp_instrumentation.adapters.opentelemetry.metrics import OtelMetrics

__all__ = ["OtelMetrics"]
