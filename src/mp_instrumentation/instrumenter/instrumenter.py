"""Instrumenter – the span lifecycle engine.

Usage::

    instrumenter = (
        Instrumenter.builder("my-db-client", DbClientSpanNameExtractor.create(getter))
        .add_attributes_extractor(DbClientAttributesExtractor(getter))
        .build_client_instrumenter(header_setter)
    )

    parent = context.get_current()
    if instrumenter.should_start(parent, request):
        ctx = instrumenter.start(parent, request)
        try:
            response = do_call(request)
        except Exception as exc:
            instrumenter.end(ctx, request, None, exc)
            raise
        instrumenter.end(ctx, request, response, None)
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Sequence, TypeVar

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import SpanKind, Tracer

from mp_instrumentation.instrumenter.attributes import AttributesBuilder
from mp_instrumentation.instrumenter.extractors import (
    AttributesExtractor,
    ContextCustomizer,
    ErrorCauseExtractor,
    OperationListener,
    SpanKindExtractor,
    SpanLinksBuilder,
    SpanLinksExtractor,
    SpanNameExtractor,
    SpanStatusBuilder,
    SpanStatusExtractor,
)
from mp_instrumentation.instrumenter.propagation import ContextPropagation
from mp_instrumentation.instrumenter.span_key import LocalRootSpan
from mp_instrumentation.instrumenter.supportability import SupportabilityMetrics
from mp_instrumentation.instrumenter.suppression import SpanSuppressor
from mp_instrumentation.kernel.time import Clock

if TYPE_CHECKING:
    from opentelemetry.propagators.textmap import TextMapPropagator
    from opentelemetry.trace import TracerProvider

    from mp_instrumentation.config.settings import InstrumentationSettings
    from mp_instrumentation.instrumenter.builder import InstrumenterBuilder

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")


class Instrumenter(Generic[REQUEST, RESPONSE]):
    """Turns a ``(request, response, error)`` triple into one span.

    Instances are immutable and thread-safe; build them with
    :meth:`Instrumenter.builder`.  Exceptions raised by extractors and
    listeners are not caught here.
    """

    def __init__(
        self,
        *,
        instrumentation_name: str,
        tracer: Tracer,
        span_name_extractor: SpanNameExtractor[REQUEST],
        span_kind_extractor: SpanKindExtractor[REQUEST],
        span_status_extractor: SpanStatusExtractor[REQUEST, RESPONSE],
        error_cause_extractor: ErrorCauseExtractor,
        attributes_extractors: Sequence[AttributesExtractor[REQUEST, RESPONSE]] = (),
        span_links_extractors: Sequence[SpanLinksExtractor[REQUEST]] = (),
        context_customizers: Sequence[ContextCustomizer[REQUEST]] = (),
        operation_listeners: Sequence[OperationListener] = (),
        span_suppressor: SpanSuppressor,
        propagation: ContextPropagation | None = None,
        supportability: SupportabilityMetrics | None = None,
        clock: Clock,
        enabled: bool = True,
    ) -> None:
        self._instrumentation_name = instrumentation_name
        self._tracer = tracer
        self._span_name_extractor = span_name_extractor
        self._span_kind_extractor = span_kind_extractor
        self._span_status_extractor = span_status_extractor
        self._error_cause_extractor = error_cause_extractor
        self._attributes_extractors = tuple(attributes_extractors)
        self._span_links_extractors = tuple(span_links_extractors)
        self._context_customizers = tuple(context_customizers)
        self._operation_listeners = tuple(operation_listeners)
        self._span_suppressor = span_suppressor
        self._propagation = propagation or ContextPropagation()
        self._supportability = supportability or SupportabilityMetrics()
        self._clock = clock
        self._enabled = enabled

    @staticmethod
    def builder(
        instrumentation_name: str,
        span_name_extractor: SpanNameExtractor[Any],
        *,
        tracer_provider: "TracerProvider | None" = None,
        propagator: "TextMapPropagator | None" = None,
        settings: "InstrumentationSettings | None" = None,
    ) -> "InstrumenterBuilder[Any, Any]":
        from mp_instrumentation.instrumenter.builder import InstrumenterBuilder

        return InstrumenterBuilder(
            instrumentation_name,
            span_name_extractor,
            tracer_provider=tracer_provider,
            propagator=propagator,
            settings=settings,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def instrumentation_name(self) -> str:
        return self._instrumentation_name

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def span_suppressor(self) -> SpanSuppressor:
        return self._span_suppressor

    @property
    def propagation(self) -> ContextPropagation:
        return self._propagation

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def should_start(self, parent_context: Context, request: REQUEST) -> bool:
        """Return ``False`` when disabled or when an ancestor already covers this kind.

        When this returns ``False`` callers must not call :meth:`start` or
        :meth:`end` and should run the operation uninstrumented.
        """
        if not self._enabled:
            return False
        kind = self._span_kind_extractor.extract(request)
        if self._span_suppressor.should_suppress(parent_context, kind):
            self._supportability.record_suppressed_span(self._instrumentation_name, kind)
            return False
        return True

    def start(self, parent_context: Context, request: REQUEST) -> Context:
        """Start the span; the returned context must be handed to :meth:`end`."""
        parent_context = self._propagation.extract(parent_context, request)
        context = self._do_start(parent_context, request, None)
        try:
            self._propagation.inject(context, request)
        except BaseException:
            trace.get_current_span(context).end()
            raise
        return context

    def end(
        self,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        """Finish the span started by :meth:`start`.

        *error* is the failure raised by the instrumented operation, if any.
        """
        self._do_end(context, request, response, error, None)

    def _start_and_end(
        self,
        parent_context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
        start_time: int,
        end_time: int,
    ) -> Context:
        context = self._do_start(parent_context, request, start_time)
        self._do_end(context, request, response, error, end_time)
        return context

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _nanos(self, timestamp: int | None) -> int:
        return self._clock.nanos() if timestamp is None else timestamp

    def _do_start(self, parent_context: Context, request: REQUEST, start_time: int | None) -> Context:
        kind = self._span_kind_extractor.extract(request)
        name = self._span_name_extractor.extract(request)

        links = SpanLinksBuilder()
        for links_extractor in self._span_links_extractors:
            links_extractor.extract(links, parent_context, request)

        attributes = AttributesBuilder()
        for extractor in self._attributes_extractors:
            extractor.on_start(attributes, parent_context, request)

        context = parent_context
        # customizers see the parent span and their values are visible to span processors
        for customizer in self._context_customizers:
            context = customizer.on_start(context, request, attributes)

        local_root = LocalRootSpan.is_local_root(context)

        span = self._tracer.start_span(
            name,
            context=context,
            kind=kind,
            attributes=attributes.as_dict(),
            links=links.links,
            start_time=start_time,
        )
        context = trace.set_span_in_context(span, context)

        # the span is live from here on: end it if the rest of start fails
        try:
            if self._operation_listeners:
                start_nanos = self._nanos(start_time)
                for listener in self._operation_listeners:
                    context = listener.on_start(context, attributes, start_nanos)

            if local_root:
                context = LocalRootSpan.store(context, span)

            return self._span_suppressor.store_in_context(context, kind, span)
        except BaseException:
            span.end()
            raise

    def _do_end(
        self,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
        end_time: int | None,
    ) -> None:
        span = trace.get_current_span(context)

        if error is not None:
            error = self._error_cause_extractor.extract(error)
            span.record_exception(error)

        attributes = AttributesBuilder()
        for extractor in self._attributes_extractors:
            extractor.on_end(attributes, context, request, response, error)
        span.set_attributes(attributes.as_dict())

        if self._operation_listeners:
            end_nanos = self._nanos(end_time)
            for listener in reversed(self._operation_listeners):
                listener.on_end(context, attributes, end_nanos)

        self._span_status_extractor.extract(SpanStatusBuilder(span), request, response, error)

        span.end(end_time=end_time)

    def __repr__(self) -> str:
        return f"Instrumenter({self._instrumentation_name!r}, enabled={self._enabled})"


__all__ = ["Instrumenter"]
