"""Annotations – ``with_span`` decorator.

Usage::

    @with_span()
    def place_order(order): ...

    @with_span("inventory.reserve", kind=SpanKind.CLIENT)
    async def reserve(sku): ...

    @with_span()
    def submit(job) -> concurrent.futures.Future[Result]:
        return executor.submit(run, job)    # span ends when the future settles
"""
from __future__ import annotations

import asyncio
import dataclasses
import functools
import inspect
import typing
from typing import Any, Callable, Hashable, TypeVar

from opentelemetry import context as otel_context
from opentelemetry.trace import SpanKind, TracerProvider

from mp_instrumentation.config.settings import InstrumentationSettings, load_instrumentation_settings
from mp_instrumentation.instrumenter import (
    CallDepth,
    ConstantSpanNameExtractor,
    Instrumenter,
    SpanKindExtractors,
    SpanNames,
)
from mp_instrumentation.instrumenter.async_support import (
    AsyncKind,
    AsyncOperationEndStrategies,
    AsyncOperationEndSupport,
)
from mp_instrumentation.instrumenter.semconv.code import CodeAttributesExtractor, CodeAttributesGetter

F = TypeVar("F", bound=Callable[..., Any])

INSTRUMENTATION_NAME = "mp_instrumentation.annotations"


@dataclasses.dataclass(frozen=True)
class MethodRequest:
    """The request object of a decorated call."""

    code_namespace: str
    method_name: str


class _MethodCodeAttributesGetter(CodeAttributesGetter[MethodRequest]):
    def get_code_namespace(self, request: MethodRequest) -> str | None:
        return request.code_namespace

    def get_method_name(self, request: MethodRequest) -> str | None:
        return request.method_name


def _method_request(fn: Callable[..., Any]) -> MethodRequest:
    qualname = SpanNames.from_function(fn)
    owner = qualname.rpartition(".")[0]
    namespace = f"{fn.__module__}.{owner}" if owner else fn.__module__
    return MethodRequest(code_namespace=namespace, method_name=fn.__name__)


def _declared_return_type(fn: Callable[..., Any]) -> Any:
    try:
        return typing.get_type_hints(fn).get("return")
    except (NameError, TypeError):
        # unresolvable forward reference: treat as undeclared
        return None


def with_span(
    name: str | None = None,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    tracer_provider: TracerProvider | None = None,
    registry: AsyncOperationEndStrategies | None = None,
    call_depth_key: Hashable | None = None,
    settings: InstrumentationSettings | None = None,
) -> Callable[[F], F]:
    """Decorator: record each call of the function as a span.

    Parameters
    ----------
    name:
        Span name; defaults to the function's qualified name.
    kind:
        Span kind.  Nested spans of the same non-internal kind are
        suppressed according to the configured strategy.
    registry:
        Async end strategies used when a sync function is declared to return
        a future or coroutine.  Defaults to a registry with the built-ins.
    call_depth_key:
        Calls sharing this key only trace the outermost invocation.
    """

    def decorator(fn: F) -> F:
        resolved_settings = settings if settings is not None else load_instrumentation_settings()
        request = _method_request(fn)
        instrumenter: Instrumenter[MethodRequest, Any] = (
            Instrumenter.builder(
                INSTRUMENTATION_NAME,
                ConstantSpanNameExtractor(name or SpanNames.from_function(fn)),
                tracer_provider=tracer_provider,
                settings=resolved_settings,
            )
            .add_attributes_extractor(CodeAttributesExtractor(_MethodCodeAttributesGetter()))
            .build(SpanKindExtractors.always(kind))
        )
        depth = CallDepth.for_key(call_depth_key) if call_depth_key is not None else None

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                if depth is not None and depth.get_and_increment() > 0:
                    try:
                        return await fn(*args, **kwargs)
                    finally:
                        depth.decrement_and_get()
                try:
                    parent = otel_context.get_current()
                    if not instrumenter.should_start(parent, request):
                        return await fn(*args, **kwargs)
                    ctx = instrumenter.start(parent, request)
                    token = otel_context.attach(ctx)
                    try:
                        result = await fn(*args, **kwargs)
                    except (asyncio.CancelledError, GeneratorExit):
                        instrumenter.end(ctx, request, None, None)
                        raise
                    except BaseException as exc:
                        instrumenter.end(ctx, request, None, exc)
                        raise
                    finally:
                        otel_context.detach(token)
                    instrumenter.end(ctx, request, result, None)
                    return result
                finally:
                    if depth is not None:
                        depth.decrement_and_get()

            async_wrapper._instrumenter = instrumenter  # type: ignore[attr-defined]
            return async_wrapper  # type: ignore[return-value]

        strategies = (
            registry
            if registry is not None
            else AsyncOperationEndStrategies.with_defaults(
                capture_experimental_span_attributes=resolved_settings.experimental_span_attributes
            )
        )
        async_kind = AsyncKind.from_type(_declared_return_type(fn))
        support = AsyncOperationEndSupport.create(instrumenter, None, async_kind, strategies)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if depth is not None and depth.get_and_increment() > 0:
                try:
                    return fn(*args, **kwargs)
                finally:
                    depth.decrement_and_get()
            try:
                parent = otel_context.get_current()
                if not instrumenter.should_start(parent, request):
                    return fn(*args, **kwargs)
                ctx = instrumenter.start(parent, request)
                token = otel_context.attach(ctx)
                try:
                    result = fn(*args, **kwargs)
                except BaseException as exc:
                    support.async_end(ctx, request, None, exc)
                    raise
                finally:
                    otel_context.detach(token)
                return support.async_end(ctx, request, result, None)
            finally:
                if depth is not None:
                    depth.decrement_and_get()

        wrapper._instrumenter = instrumenter  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["INSTRUMENTATION_NAME", "MethodRequest", "with_span"]
