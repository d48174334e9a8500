"""Instrumenter – SpanKey and LocalRootSpan context markers."""
from __future__ import annotations

from typing import ClassVar

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Span


class SpanKey:
    """A named context slot holding the span that represents one kind of operation.

    Suppression strategies look these up on the parent context to decide
    whether a new span would duplicate an ancestor.
    """

    KIND_SERVER: ClassVar["SpanKey"]
    KIND_CLIENT: ClassVar["SpanKey"]
    KIND_CONSUMER: ClassVar["SpanKey"]
    KIND_PRODUCER: ClassVar["SpanKey"]
    HTTP_CLIENT: ClassVar["SpanKey"]
    HTTP_SERVER: ClassVar["SpanKey"]
    DB_CLIENT: ClassVar["SpanKey"]
    RPC_CLIENT: ClassVar["SpanKey"]
    PRODUCER: ClassVar["SpanKey"]
    CONSUMER_RECEIVE: ClassVar["SpanKey"]
    CONSUMER_PROCESS: ClassVar["SpanKey"]

    __slots__ = ("_name", "_key")

    def __init__(self, name: str) -> None:
        self._name = name
        self._key = otel_context.create_key(f"mp-instrumentation-span-key-{name}")

    @property
    def name(self) -> str:
        return self._name

    def store_in_context(self, context: Context, span: Span) -> Context:
        return otel_context.set_value(self._key, span, context)

    def from_context_or_none(self, context: Context) -> Span | None:
        return otel_context.get_value(self._key, context)

    def __repr__(self) -> str:
        return f"SpanKey({self._name!r})"


SpanKey.KIND_SERVER = SpanKey("kind-server")
SpanKey.KIND_CLIENT = SpanKey("kind-client")
SpanKey.KIND_CONSUMER = SpanKey("kind-consumer")
SpanKey.KIND_PRODUCER = SpanKey("kind-producer")
SpanKey.HTTP_CLIENT = SpanKey("http-client")
SpanKey.HTTP_SERVER = SpanKey("http-server")
SpanKey.DB_CLIENT = SpanKey("db-client")
SpanKey.RPC_CLIENT = SpanKey("rpc-client")
SpanKey.PRODUCER = SpanKey("producer")
SpanKey.CONSUMER_RECEIVE = SpanKey("consumer-receive")
SpanKey.CONSUMER_PROCESS = SpanKey("consumer-process")


_LOCAL_ROOT_KEY = otel_context.create_key("mp-instrumentation-local-root-span")


class LocalRootSpan:
    """The first span of a trace created inside this process."""

    @staticmethod
    def is_local_root(parent_context: Context) -> bool:
        """``True`` when *parent_context* has no span, or only a remote one."""
        parent = trace.get_current_span(parent_context).get_span_context()
        return not parent.is_valid or parent.is_remote

    @staticmethod
    def store(context: Context, span: Span) -> Context:
        return otel_context.set_value(_LOCAL_ROOT_KEY, span, context)

    @staticmethod
    def from_context_or_none(context: Context) -> Span | None:
        return otel_context.get_value(_LOCAL_ROOT_KEY, context)

    @staticmethod
    def from_context(context: Context) -> Span:
        """Return the local root span, or the invalid span when there is none."""
        span = LocalRootSpan.from_context_or_none(context)
        return span if span is not None else trace.INVALID_SPAN


__all__ = ["LocalRootSpan", "SpanKey"]
