"""Unit tests for FailSoftInstrumenter."""

from __future__ import annotations

import pytest
from opentelemetry.context import Context
from opentelemetry.propagators.textmap import DefaultSetter
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from mp_instrumentation.config.settings import InstrumentationSettings
from mp_instrumentation.instrumenter import (
    ConstantSpanNameExtractor,
    FailSoftInstrumenter,
    Instrumenter,
    SpanKindExtractors,
    was_started,
)


class ExplodingExtractor:
    def __init__(self, *, on_start: bool = False, on_end: bool = False) -> None:
        self._on_start = on_start
        self._on_end = on_end

    def on_start(self, attributes, parent_context, request) -> None:
        if self._on_start:
            raise RuntimeError("start bug")

    def on_end(self, attributes, context, request, response, error) -> None:
        if self._on_end:
            raise RuntimeError("end bug")


class ExplodingKind:
    def extract(self, request):
        raise RuntimeError("kind bug")


class ExplodingListener:
    def on_start(self, context, start_attributes, start_nanos):
        raise RuntimeError("listener bug")

    def on_end(self, context, end_attributes, end_nanos) -> None:
        pass


class ExplodingSetter(DefaultSetter):
    def set(self, carrier, key, value) -> None:
        raise RuntimeError("setter bug")


def _builder(telemetry, **settings):
    return Instrumenter.builder(
        "fail-soft",
        ConstantSpanNameExtractor("op"),
        tracer_provider=telemetry.tracer_provider,
        propagator=TraceContextTextMapPropagator(),
        settings=InstrumentationSettings(**settings),
    )


class TestFailSoftInstrumenter:
    def test_builder_selects_fail_soft_variant(self, telemetry) -> None:
        assert isinstance(_builder(telemetry).set_fail_soft(True).build(), FailSoftInstrumenter)
        assert isinstance(_builder(telemetry, fail_soft=True).build(), FailSoftInstrumenter)
        assert not isinstance(_builder(telemetry).build(), FailSoftInstrumenter)

    def test_should_start_failure_returns_false(self, telemetry) -> None:
        instrumenter = _builder(telemetry).set_fail_soft(True).build(ExplodingKind())
        assert instrumenter.should_start(Context(), "req") is False

    def test_start_failure_returns_unstarted_context(self, telemetry) -> None:
        instrumenter = (
            _builder(telemetry).set_fail_soft(True).add_attributes_extractor(ExplodingExtractor(on_start=True)).build()
        )
        ctx = instrumenter.start(Context(), "req")
        assert was_started(ctx) is False

        instrumenter.end(ctx, "req", None, None)
        assert telemetry.finished_spans() == ()

    def test_end_failure_still_ends_span(self, telemetry) -> None:
        instrumenter = (
            _builder(telemetry).set_fail_soft(True).add_attributes_extractor(ExplodingExtractor(on_end=True)).build()
        )
        ctx = instrumenter.start(Context(), "req")
        assert was_started(ctx) is True

        instrumenter.end(ctx, "req", None, None)
        assert len(telemetry.finished_spans()) == 1

    def test_successful_path_is_unchanged(self, telemetry) -> None:
        instrumenter = _builder(telemetry).set_fail_soft(True).build()
        ctx = instrumenter.start(Context(), "req")
        instrumenter.end(ctx, "req", None, None)
        assert telemetry.finished_spans()[0].name == "op"

    def test_listener_start_failure_ends_created_span(self, telemetry) -> None:
        instrumenter = _builder(telemetry).set_fail_soft(True).add_operation_listener(ExplodingListener()).build()
        ctx = instrumenter.start(Context(), "req")
        assert was_started(ctx) is False

        instrumenter.end(ctx, "req", None, None)
        assert [s.name for s in telemetry.finished_spans()] == ["op"]

    def test_inject_failure_ends_created_span(self, telemetry) -> None:
        instrumenter = (
            _builder(telemetry)
            .set_fail_soft(True)
            .build_downstream_instrumenter(ExplodingSetter(), SpanKindExtractors.always_client())
        )
        ctx = instrumenter.start(Context(), {})
        assert was_started(ctx) is False

        instrumenter.end(ctx, {}, None, None)
        assert len(telemetry.finished_spans()) == 1


class TestStartFailureWithoutFailSoft:
    def test_listener_failure_propagates_and_ends_span(self, telemetry) -> None:
        instrumenter = _builder(telemetry).add_operation_listener(ExplodingListener()).build()
        with pytest.raises(RuntimeError, match="listener bug"):
            instrumenter.start(Context(), "req")
        assert len(telemetry.finished_spans()) == 1
