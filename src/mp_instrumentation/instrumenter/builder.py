"""Instrumenter – InstrumenterBuilder."""
from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, TypeVar

from opentelemetry import trace
from opentelemetry.propagators.textmap import Getter, Setter, TextMapPropagator
from opentelemetry.trace import TracerProvider

from mp_instrumentation.config.settings import InstrumentationSettings, load_instrumentation_settings
from mp_instrumentation.instrumenter.extractors import (
    AttributesExtractor,
    ContextCustomizer,
    DefaultErrorCauseExtractor,
    DefaultSpanStatusExtractor,
    ErrorCauseExtractor,
    OperationListener,
    SpanKeyProvider,
    SpanKindExtractor,
    SpanKindExtractors,
    SpanLinksExtractor,
    SpanNameExtractor,
    SpanStatusExtractor,
)
from mp_instrumentation.instrumenter.fail_soft import FailSoftInstrumenter
from mp_instrumentation.instrumenter.instrumenter import Instrumenter
from mp_instrumentation.instrumenter.propagation import (
    ContextPropagation,
    DownstreamPropagation,
    UpstreamPropagation,
)
from mp_instrumentation.instrumenter.span_key import SpanKey
from mp_instrumentation.instrumenter.supportability import SupportabilityMetrics
from mp_instrumentation.instrumenter.suppression import SpanSuppressionStrategy, SpanSuppressor
from mp_instrumentation.kernel.errors import InstrumenterConfigurationError
from mp_instrumentation.kernel.time import Clock, SystemClock
from mp_instrumentation.observability.metrics import Metrics, NoopMetrics

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

OperationMetricsFactory = Callable[[Metrics], OperationListener]


class InstrumenterBuilder(Generic[REQUEST, RESPONSE]):
    """Fluent, mutable configuration for an :class:`Instrumenter`.

    Every ``build*`` call snapshots the current configuration; mutating the
    builder afterwards does not affect instrumenters already built.
    """

    def __init__(
        self,
        instrumentation_name: str,
        span_name_extractor: SpanNameExtractor[REQUEST] | None,
        *,
        tracer_provider: TracerProvider | None = None,
        propagator: TextMapPropagator | None = None,
        settings: InstrumentationSettings | None = None,
    ) -> None:
        if not instrumentation_name:
            raise InstrumenterConfigurationError("instrumentation_name must not be empty")
        if span_name_extractor is None:
            raise InstrumenterConfigurationError(
                "A span name extractor is required",
                instrumentation_name=instrumentation_name,
            )
        settings = settings if settings is not None else load_instrumentation_settings()

        self._instrumentation_name = instrumentation_name
        self._span_name_extractor = span_name_extractor
        self._tracer_provider = tracer_provider
        self._propagator = propagator
        self._instrumentation_version: str | None = None
        self._schema_url: str | None = None
        self._span_status_extractor: SpanStatusExtractor[REQUEST, RESPONSE] = DefaultSpanStatusExtractor()
        self._error_cause_extractor: ErrorCauseExtractor = DefaultErrorCauseExtractor()
        self._attributes_extractors: list[AttributesExtractor[REQUEST, RESPONSE]] = []
        self._span_links_extractors: list[SpanLinksExtractor[REQUEST]] = []
        self._context_customizers: list[ContextCustomizer[REQUEST]] = []
        self._operation_listeners: list[OperationListener] = []
        self._operation_metrics: list[OperationMetricsFactory] = []
        self._metrics: Metrics = NoopMetrics()
        self._clock: Clock = SystemClock()
        self._enabled = settings.enabled
        self._span_suppression_strategy = SpanSuppressionStrategy.from_value(
            settings.span_suppression_strategy
        )
        self._fail_soft = settings.fail_soft

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_instrumentation_version(self, version: str) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._instrumentation_version = version
        return self

    def set_schema_url(self, schema_url: str) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._schema_url = schema_url
        return self

    def set_span_status_extractor(
        self, extractor: SpanStatusExtractor[REQUEST, RESPONSE]
    ) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._span_status_extractor = extractor
        return self

    def set_error_cause_extractor(self, extractor: ErrorCauseExtractor) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._error_cause_extractor = extractor
        return self

    def add_attributes_extractor(
        self, extractor: AttributesExtractor[REQUEST, RESPONSE]
    ) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._attributes_extractors.append(extractor)
        return self

    def add_attributes_extractors(
        self, extractors: Iterable[AttributesExtractor[REQUEST, RESPONSE]]
    ) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._attributes_extractors.extend(extractors)
        return self

    def add_span_links_extractor(
        self, extractor: SpanLinksExtractor[REQUEST]
    ) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._span_links_extractors.append(extractor)
        return self

    def add_context_customizer(
        self, customizer: ContextCustomizer[REQUEST]
    ) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._context_customizers.append(customizer)
        return self

    def add_operation_listener(self, listener: OperationListener) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._operation_listeners.append(listener)
        return self

    def add_operation_metrics(self, factory: OperationMetricsFactory) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        """Register a listener created at build time from the configured :class:`Metrics`."""
        self._operation_metrics.append(factory)
        return self

    def set_metrics(self, metrics: Metrics) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._metrics = metrics
        return self

    def set_enabled(self, enabled: bool) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._enabled = enabled
        return self

    def set_span_suppression_strategy(
        self, strategy: SpanSuppressionStrategy
    ) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._span_suppression_strategy = strategy
        return self

    def set_clock(self, clock: Clock) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._clock = clock
        return self

    def set_fail_soft(self, fail_soft: bool) -> "InstrumenterBuilder[REQUEST, RESPONSE]":
        self._fail_soft = fail_soft
        return self

    # ------------------------------------------------------------------
    # Terminal builders
    # ------------------------------------------------------------------

    def build(
        self, span_kind_extractor: SpanKindExtractor[REQUEST] | None = None
    ) -> Instrumenter[REQUEST, RESPONSE]:
        return self._build(span_kind_extractor or SpanKindExtractors.always_internal(), ContextPropagation())

    def build_client_instrumenter(self, setter: Setter[REQUEST]) -> Instrumenter[REQUEST, RESPONSE]:
        """CLIENT spans whose context is injected into the outgoing request."""
        return self.build_downstream_instrumenter(setter, SpanKindExtractors.always_client())

    def build_server_instrumenter(self, getter: Getter[REQUEST]) -> Instrumenter[REQUEST, RESPONSE]:
        """SERVER spans parented on the context carried by the incoming request."""
        return self.build_upstream_instrumenter(getter, SpanKindExtractors.always_server())

    def build_upstream_instrumenter(
        self, getter: Getter[REQUEST], span_kind_extractor: SpanKindExtractor[REQUEST]
    ) -> Instrumenter[REQUEST, RESPONSE]:
        return self._build(span_kind_extractor, UpstreamPropagation(getter, self._propagator))

    def build_downstream_instrumenter(
        self, setter: Setter[REQUEST], span_kind_extractor: SpanKindExtractor[REQUEST]
    ) -> Instrumenter[REQUEST, RESPONSE]:
        return self._build(span_kind_extractor, DownstreamPropagation(setter, self._propagator))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _span_keys(self) -> list[SpanKey]:
        keys: list[SpanKey] = []
        for extractor in self._attributes_extractors:
            if isinstance(extractor, SpanKeyProvider):
                key = extractor.span_key
                if key is not None:
                    keys.append(key)
        return keys

    def _build_span_suppressor(self) -> SpanSuppressor:
        return self._span_suppression_strategy.create(self._span_keys())

    def _build(
        self,
        span_kind_extractor: SpanKindExtractor[REQUEST],
        propagation: ContextPropagation,
    ) -> Instrumenter[REQUEST, RESPONSE]:
        tracer = trace.get_tracer(
            self._instrumentation_name,
            self._instrumentation_version,
            tracer_provider=self._tracer_provider,
            schema_url=self._schema_url,
        )
        listeners = list(self._operation_listeners)
        listeners.extend(factory(self._metrics) for factory in self._operation_metrics)

        cls: type[Instrumenter[Any, Any]] = FailSoftInstrumenter if self._fail_soft else Instrumenter
        return cls(
            instrumentation_name=self._instrumentation_name,
            tracer=tracer,
            span_name_extractor=self._span_name_extractor,
            span_kind_extractor=span_kind_extractor,
            span_status_extractor=self._span_status_extractor,
            error_cause_extractor=self._error_cause_extractor,
            attributes_extractors=tuple(self._attributes_extractors),
            span_links_extractors=tuple(self._span_links_extractors),
            context_customizers=tuple(self._context_customizers),
            operation_listeners=tuple(listeners),
            span_suppressor=self._build_span_suppressor(),
            propagation=propagation,
            supportability=SupportabilityMetrics(self._metrics),
            clock=self._clock,
            enabled=self._enabled,
        )


__all__ = ["InstrumenterBuilder", "OperationMetricsFactory"]
