"""
mp_instrumentation – telemetry instrumentation pipeline.

Import path convention::

    from mp_instrumentation.instrumenter import Instrumenter, SpanSuppressionStrategy
    from mp_instrumentation.instrumenter.async_support import AsyncOperationEndSupport
    from mp_instrumentation.instrumenter.semconv import HttpClientAttributesExtractor
    from mp_instrumentation.annotations import with_span
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
