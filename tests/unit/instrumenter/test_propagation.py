"""Unit tests for upstream/downstream context propagation."""

from __future__ import annotations

from typing import Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.propagators.textmap import DefaultGetter, DefaultSetter
from opentelemetry.trace import SpanKind
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from mp_instrumentation.config.settings import InstrumentationSettings
from mp_instrumentation.instrumenter import ConstantSpanNameExtractor, Instrumenter, LocalRootSpan

TRACE_ID = "4bf92f3577b34da6a3ce929d0e0e4736"
PARENT_ID = "00f067aa0ba902b7"


def _builder(telemetry, name: str):
    return Instrumenter.builder(
        name,
        ConstantSpanNameExtractor(name),
        tracer_provider=telemetry.tracer_provider,
        propagator=TraceContextTextMapPropagator(),
        settings=InstrumentationSettings(),
    )


class TestUpstreamPropagation:
    def test_server_span_continues_remote_trace(self, telemetry) -> None:
        instrumenter = _builder(telemetry, "server").build_server_instrumenter(DefaultGetter())
        headers = {"traceparent": f"00-{TRACE_ID}-{PARENT_ID}-01"}

        ctx = instrumenter.start(Context(), headers)
        instrumenter.end(ctx, headers, None, None)

        (span,) = telemetry.finished_spans()
        assert span.kind is SpanKind.SERVER
        assert span.context.trace_id == int(TRACE_ID, 16)
        assert span.parent.span_id == int(PARENT_ID, 16)
        assert span.parent.is_remote

    def test_span_under_remote_parent_is_local_root(self, telemetry) -> None:
        instrumenter = _builder(telemetry, "server").build_server_instrumenter(DefaultGetter())
        headers = {"traceparent": f"00-{TRACE_ID}-{PARENT_ID}-01"}

        ctx = instrumenter.start(Context(), headers)
        assert LocalRootSpan.from_context(ctx) is trace.get_current_span(ctx)

    def test_missing_header_starts_new_trace(self, telemetry) -> None:
        instrumenter = _builder(telemetry, "server").build_server_instrumenter(DefaultGetter())
        ctx = instrumenter.start(Context(), {})
        instrumenter.end(ctx, {}, None, None)

        (span,) = telemetry.finished_spans()
        assert span.parent is None


class TestDownstreamPropagation:
    def test_client_span_is_injected_into_request(self, telemetry) -> None:
        instrumenter = _builder(telemetry, "client").build_client_instrumenter(DefaultSetter())
        carrier: dict[str, str] = {}

        ctx = instrumenter.start(Context(), carrier)
        span_context = trace.get_current_span(ctx).get_span_context()
        instrumenter.end(ctx, carrier, None, None)

        assert carrier["traceparent"] == (
            f"00-{span_context.trace_id:032x}-{span_context.span_id:016x}-01"
        )
        assert telemetry.finished_spans()[0].kind is SpanKind.CLIENT

    def test_none_request_is_not_injected(self, telemetry) -> None:
        instrumenter = _builder(telemetry, "client").build_client_instrumenter(DefaultSetter())
        request: Optional[dict[str, str]] = None

        ctx = instrumenter.start(Context(), request)
        instrumenter.end(ctx, request, None, None)
        assert len(telemetry.finished_spans()) == 1

    def test_build_does_not_touch_carrier(self, telemetry) -> None:
        instrumenter = _builder(telemetry, "internal").build()
        carrier: dict[str, str] = {}
        instrumenter.start(Context(), carrier)
        assert carrier == {}
