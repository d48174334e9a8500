"""Unit tests for async operation end strategies, registry and support."""

from __future__ import annotations

import asyncio
import concurrent.futures
import contextvars
from typing import Any, Coroutine

import pytest
from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import StatusCode

from mp_instrumentation.config.settings import InstrumentationSettings
from mp_instrumentation.instrumenter import ConstantSpanNameExtractor, Instrumenter
from mp_instrumentation.instrumenter.async_support import (
    CANCELED_ATTRIBUTE,
    AsyncioFutureEndStrategy,
    AsyncKind,
    AsyncOperationEndStrategies,
    AsyncOperationEndStrategy,
    AsyncOperationEndSupport,
    ConcurrentFutureEndStrategy,
    CoroutineEndStrategy,
    try_to_get_response,
)
from mp_instrumentation.kernel.errors import RegistryClosedError


class ResponseSpy:
    """Attributes extractor capturing what ``end`` received."""

    def __init__(self) -> None:
        self.responses: list[Any] = []
        self.errors: list[BaseException | None] = []

    def on_start(self, attributes, parent_context, request) -> None:
        pass

    def on_end(self, attributes, context, request, response, error) -> None:
        self.responses.append(response)
        self.errors.append(error)


@pytest.fixture
def spy() -> ResponseSpy:
    return ResponseSpy()


@pytest.fixture
def instrumenter(telemetry, spy):
    return (
        Instrumenter.builder(
            "async-test",
            ConstantSpanNameExtractor("async-op"),
            tracer_provider=telemetry.tracer_provider,
            settings=InstrumentationSettings(),
        )
        .add_attributes_extractor(spy)
        .build()
    )


@pytest.fixture
def registry():
    registry = AsyncOperationEndStrategies.with_defaults()
    yield registry
    registry.shutdown()


def _support(instrumenter, registry, async_type, response_type: Any = None) -> AsyncOperationEndSupport:
    return AsyncOperationEndSupport.create(instrumenter, response_type, async_type, registry)


# ---------------------------------------------------------------------------
# AsyncKind
# ---------------------------------------------------------------------------


class TestAsyncKind:
    def test_from_type_resolves_generic_aliases(self) -> None:
        assert AsyncKind.from_type(concurrent.futures.Future[int]) is AsyncKind.CONCURRENT_FUTURE
        assert AsyncKind.from_type(asyncio.Task) is AsyncKind.ASYNCIO_FUTURE
        assert AsyncKind.from_type(Coroutine[Any, Any, str]) is AsyncKind.COROUTINE

    def test_from_type_unknown_is_none(self) -> None:
        assert AsyncKind.from_type(int) is None
        assert AsyncKind.from_type(None) is None
        assert AsyncKind.from_type(Any) is None

    def test_of_runtime_values(self) -> None:
        assert AsyncKind.of(concurrent.futures.Future()) is AsyncKind.CONCURRENT_FUTURE
        assert AsyncKind.of("plain") is None

        async def coro() -> None:
            pass

        value = coro()
        try:
            assert AsyncKind.of(value) is AsyncKind.COROUTINE
        finally:
            value.close()


# ---------------------------------------------------------------------------
# try_to_get_response
# ---------------------------------------------------------------------------


class TestTryToGetResponse:
    def test_matching_type_passes_through(self) -> None:
        assert try_to_get_response(str, "ok") == "ok"

    def test_mismatch_gives_none(self) -> None:
        assert try_to_get_response(str, 42) is None

    def test_none_type_accepts_anything(self) -> None:
        assert try_to_get_response(None, 42) == 42

    def test_generic_alias_checks_origin(self) -> None:
        assert try_to_get_response(list[int], [1]) == [1]
        assert try_to_get_response(list[int], (1,)) is None


# ---------------------------------------------------------------------------
# AsyncOperationEndSupport
# ---------------------------------------------------------------------------


class TestAsyncOperationEndSupport:
    def test_error_ends_immediately(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.CONCURRENT_FUTURE)
        ctx = instrumenter.start(Context(), "req")
        future: concurrent.futures.Future[str] = concurrent.futures.Future()

        assert support.async_end(ctx, "req", future, ValueError("sync failure")) is future
        assert len(telemetry.finished_spans()) == 1
        assert isinstance(spy.errors[0], ValueError)

    def test_plain_value_ends_immediately(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, None, response_type=str)
        ctx = instrumenter.start(Context(), "req")

        assert support.async_end(ctx, "req", "done", None) == "done"
        assert spy.responses == ["done"]
        assert len(telemetry.finished_spans()) == 1

    def test_plain_value_of_wrong_type_gives_no_response(self, instrumenter, registry, spy) -> None:
        support = _support(instrumenter, registry, None, response_type=str)
        ctx = instrumenter.start(Context(), "req")
        support.async_end(ctx, "req", 123, None)
        assert spy.responses == [None]

    def test_declared_kind_mismatching_value_ends_immediately(self, instrumenter, registry, telemetry) -> None:
        support = _support(instrumenter, registry, AsyncKind.CONCURRENT_FUTURE)
        ctx = instrumenter.start(Context(), "req")
        support.async_end(ctx, "req", "not a future", None)
        assert len(telemetry.finished_spans()) == 1

    def test_strategy_resolved_from_declared_type(self, instrumenter, registry) -> None:
        support = _support(instrumenter, registry, concurrent.futures.Future)
        assert support.async_kind is AsyncKind.CONCURRENT_FUTURE
        assert isinstance(support.strategy, ConcurrentFutureEndStrategy)

    def test_completed_future_ends_synchronously(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.CONCURRENT_FUTURE, response_type=int)
        future: concurrent.futures.Future[int] = concurrent.futures.Future()
        future.set_result(7)
        ctx = instrumenter.start(Context(), "req")

        assert support.async_end(ctx, "req", future, None) is future
        assert spy.responses == [7]
        assert len(telemetry.finished_spans()) == 1

    def test_pending_future_ends_on_completion(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.CONCURRENT_FUTURE, response_type=int)
        future: concurrent.futures.Future[int] = concurrent.futures.Future()
        ctx = instrumenter.start(Context(), "req")

        support.async_end(ctx, "req", future, None)
        assert telemetry.finished_spans() == ()

        future.set_result(11)
        assert spy.responses == [11]
        assert len(telemetry.finished_spans()) == 1

    def test_future_failure_records_error(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.CONCURRENT_FUTURE)
        future: concurrent.futures.Future[int] = concurrent.futures.Future()
        ctx = instrumenter.start(Context(), "req")

        support.async_end(ctx, "req", future, None)
        future.set_exception(ConnectionError("reset"))

        assert isinstance(spy.errors[0], ConnectionError)
        assert telemetry.finished_spans()[0].status.status_code is StatusCode.ERROR

    def test_cancelled_future_is_not_an_error(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.CONCURRENT_FUTURE)
        future: concurrent.futures.Future[int] = concurrent.futures.Future()
        ctx = instrumenter.start(Context(), "req")

        support.async_end(ctx, "req", future, None)
        assert future.cancel()

        (span,) = telemetry.finished_spans()
        assert span.status.status_code is StatusCode.UNSET
        assert CANCELED_ATTRIBUTE not in span.attributes
        assert spy.errors == [None]

    def test_cancelled_future_tagged_when_experimental(self, instrumenter, telemetry) -> None:
        registry = AsyncOperationEndStrategies.with_defaults(capture_experimental_span_attributes=True)
        support = _support(instrumenter, registry, AsyncKind.CONCURRENT_FUTURE)
        future: concurrent.futures.Future[int] = concurrent.futures.Future()
        ctx = instrumenter.start(Context(), "req")

        support.async_end(ctx, "req", future, None)
        future.cancel()

        assert telemetry.finished_spans()[0].attributes[CANCELED_ATTRIBUTE] is True

    def test_asyncio_future(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.ASYNCIO_FUTURE, response_type=str)

        async def scenario() -> None:
            loop = asyncio.get_running_loop()
            future = loop.create_future()
            ctx = instrumenter.start(Context(), "req")
            support.async_end(ctx, "req", future, None)
            assert telemetry.finished_spans() == ()
            future.set_result("pong")
            await future
            # done-callbacks are scheduled with call_soon
            await asyncio.sleep(0)

        asyncio.run(scenario())
        assert spy.responses == ["pong"]
        assert len(telemetry.finished_spans()) == 1

    def test_asyncio_task_cancelled(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.ASYNCIO_FUTURE)

        async def scenario() -> None:
            task = asyncio.ensure_future(asyncio.sleep(10))
            ctx = instrumenter.start(Context(), "req")
            support.async_end(ctx, "req", task, None)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            await asyncio.sleep(0)

        asyncio.run(scenario())
        assert spy.errors == [None]
        assert telemetry.finished_spans()[0].status.status_code is StatusCode.UNSET


class TestCoroutineEndStrategy:
    def test_coroutine_ends_after_await(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.COROUTINE, response_type=int)
        seen_span: list[Any] = []

        async def work() -> int:
            seen_span.append(trace.get_current_span())
            return 5

        ctx = instrumenter.start(Context(), "req")
        wrapped = support.async_end(ctx, "req", work(), None)
        assert telemetry.finished_spans() == ()

        assert asyncio.run(wrapped) == 5
        assert spy.responses == [5]
        assert seen_span == [trace.get_current_span(ctx)]

    def test_coroutine_failure_is_recorded_and_reraised(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.COROUTINE)

        async def work() -> None:
            raise LookupError("nope")

        ctx = instrumenter.start(Context(), "req")
        wrapped = support.async_end(ctx, "req", work(), None)

        with pytest.raises(LookupError):
            asyncio.run(wrapped)
        assert isinstance(spy.errors[0], LookupError)
        assert telemetry.finished_spans()[0].status.status_code is StatusCode.ERROR

    def test_cancelled_coroutine_is_not_an_error(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.COROUTINE)

        async def work() -> None:
            await asyncio.sleep(10)

        async def scenario() -> None:
            ctx = instrumenter.start(Context(), "req")
            task = asyncio.ensure_future(support.async_end(ctx, "req", work(), None))
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert spy.errors == [None]
        assert telemetry.finished_spans()[0].status.status_code is StatusCode.UNSET

    def test_base_exception_is_recorded_and_reraised(self, instrumenter, registry, telemetry, spy) -> None:
        support = _support(instrumenter, registry, AsyncKind.COROUTINE)

        async def work() -> None:
            raise SystemExit(1)

        ctx = instrumenter.start(Context(), "req")
        wrapped = support.async_end(ctx, "req", work(), None)

        with pytest.raises(SystemExit):
            wrapped.send(None)
        assert isinstance(spy.errors[0], SystemExit)
        assert len(telemetry.finished_spans()) == 1

    def test_close_from_another_context_ends_span_quietly(
        self, instrumenter, registry, telemetry, spy, caplog: pytest.LogCaptureFixture
    ) -> None:
        support = _support(instrumenter, registry, AsyncKind.COROUTINE)

        async def work() -> None:
            await asyncio.sleep(0)

        ctx = instrumenter.start(Context(), "req")
        wrapped = support.async_end(ctx, "req", work(), None)
        # suspend inside a separate execution context, then close from this one
        contextvars.copy_context().run(wrapped.send, None)
        wrapped.close()

        assert spy.errors == [None]
        assert len(telemetry.finished_spans()) == 1
        assert "Failed to detach context" not in caplog.text

    def test_context_is_restored_after_await(self, instrumenter, registry) -> None:
        support = _support(instrumenter, registry, AsyncKind.COROUTINE)

        async def work() -> None:
            pass

        async def scenario() -> None:
            before = otel_context.get_current()
            ctx = instrumenter.start(Context(), "req")
            await support.async_end(ctx, "req", work(), None)
            assert otel_context.get_current() == before

        asyncio.run(scenario())


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class DummyStrategy(AsyncOperationEndStrategy):
    def supports(self, kind: AsyncKind) -> bool:
        return kind is AsyncKind.CONCURRENT_FUTURE

    def end(self, instrumenter, context, request, async_value, response_type) -> Any:
        return "dummy"


class TestAsyncOperationEndStrategies:
    def test_defaults_cover_every_kind(self, registry) -> None:
        assert isinstance(registry.resolve_strategy(AsyncKind.CONCURRENT_FUTURE), ConcurrentFutureEndStrategy)
        assert isinstance(registry.resolve_strategy(AsyncKind.ASYNCIO_FUTURE), AsyncioFutureEndStrategy)
        assert isinstance(registry.resolve_strategy(AsyncKind.COROUTINE), CoroutineEndStrategy)
        assert registry.resolve_strategy(None) is None

    def test_first_registered_match_wins(self) -> None:
        dummy = DummyStrategy()
        registry = AsyncOperationEndStrategies([dummy, ConcurrentFutureEndStrategy()])
        assert registry.resolve_strategy(AsyncKind.CONCURRENT_FUTURE) is dummy

    def test_unregister(self) -> None:
        dummy = DummyStrategy()
        registry = AsyncOperationEndStrategies([dummy])
        registry.unregister(dummy)
        registry.unregister(dummy)
        assert len(registry) == 0
        assert registry.resolve_strategy(AsyncKind.CONCURRENT_FUTURE) is None

    def test_register_none_rejected(self) -> None:
        with pytest.raises(TypeError):
            AsyncOperationEndStrategies().register(None)  # type: ignore[arg-type]

    def test_shutdown_closes_registry(self) -> None:
        with AsyncOperationEndStrategies.with_defaults() as registry:
            assert len(registry) == 3
        assert registry.closed
        assert registry.strategies == ()
        assert registry.resolve_strategy(AsyncKind.COROUTINE) is None
        with pytest.raises(RegistryClosedError):
            registry.register(DummyStrategy())

    def test_support_created_after_unregister_keeps_no_strategy(self, instrumenter) -> None:
        dummy = DummyStrategy()
        registry = AsyncOperationEndStrategies([dummy])
        registry.unregister(dummy)
        support = AsyncOperationEndSupport.create(instrumenter, None, AsyncKind.CONCURRENT_FUTURE, registry)
        assert support.strategy is None
