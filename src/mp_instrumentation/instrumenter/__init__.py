"""Instrumenter – the span lifecycle engine and its extension points."""
from mp_instrumentation.instrumenter.attributes import (
    AttributeScalar,
    AttributesBuilder,
    AttributeValue,
    set_attribute,
)
from mp_instrumentation.instrumenter.builder import InstrumenterBuilder, OperationMetricsFactory
from mp_instrumentation.instrumenter.call_depth import CallDepth
from mp_instrumentation.instrumenter.extractors import (
    AttributesExtractor,
    ConstantAttributesExtractor,
    ConstantSpanNameExtractor,
    ContextCustomizer,
    DefaultErrorCauseExtractor,
    DefaultSpanStatusExtractor,
    ErrorCauseExtractor,
    OperationListener,
    SpanKeyProvider,
    SpanKindExtractor,
    SpanKindExtractors,
    SpanLinksBuilder,
    SpanLinksExtractor,
    SpanNameExtractor,
    SpanStatusBuilder,
    SpanStatusExtractor,
    UnwrappingErrorCauseExtractor,
)
from mp_instrumentation.instrumenter.fail_soft import FailSoftInstrumenter, was_started
from mp_instrumentation.instrumenter.instrumenter import Instrumenter
from mp_instrumentation.instrumenter.propagation import (
    ContextPropagation,
    DownstreamPropagation,
    UpstreamPropagation,
)
from mp_instrumentation.instrumenter.span_key import LocalRootSpan, SpanKey
from mp_instrumentation.instrumenter.span_names import SpanNames
from mp_instrumentation.instrumenter.supportability import SupportabilityMetrics
from mp_instrumentation.instrumenter.suppression import SpanSuppressionStrategy, SpanSuppressor

__all__ = [
    "AttributeScalar",
    "AttributeValue",
    "AttributesBuilder",
    "AttributesExtractor",
    "CallDepth",
    "ConstantAttributesExtractor",
    "ConstantSpanNameExtractor",
    "ContextCustomizer",
    "ContextPropagation",
    "DefaultErrorCauseExtractor",
    "DefaultSpanStatusExtractor",
    "DownstreamPropagation",
    "ErrorCauseExtractor",
    "FailSoftInstrumenter",
    "Instrumenter",
    "InstrumenterBuilder",
    "LocalRootSpan",
    "OperationListener",
    "OperationMetricsFactory",
    "SpanKey",
    "SpanKeyProvider",
    "SpanKindExtractor",
    "SpanKindExtractors",
    "SpanLinksBuilder",
    "SpanLinksExtractor",
    "SpanNameExtractor",
    "SpanNames",
    "SpanStatusBuilder",
    "SpanStatusExtractor",
    "SpanSuppressionStrategy",
    "SpanSuppressor",
    "SupportabilityMetrics",
    "UnwrappingErrorCauseExtractor",
    "UpstreamPropagation",
    "set_attribute",
    "was_started",
]
