"""Instrumenter – span suppression strategies.

A suppressor answers two questions for a span kind:

* ``should_suppress(parent_context, kind)`` – is this kind already
  represented by an ancestor?
* ``store_in_context(context, kind, span)`` – mark the new span so that
  descendants can see it.
"""
from __future__ import annotations

import enum
from typing import Iterable, Protocol

from opentelemetry.context import Context
from opentelemetry.trace import Span, SpanKind

from mp_instrumentation.instrumenter.span_key import SpanKey


class SpanSuppressor(Protocol):
    def should_suppress(self, parent_context: Context, kind: SpanKind) -> bool: ...

    def store_in_context(self, context: Context, kind: SpanKind, span: Span) -> Context: ...


class _JustStoreServer:
    """Never suppresses; server spans are still recorded for downstream lookups."""

    def should_suppress(self, parent_context: Context, kind: SpanKind) -> bool:  # noqa: ARG002
        return False

    def store_in_context(self, context: Context, kind: SpanKind, span: Span) -> Context:
        if kind is SpanKind.SERVER:
            return SpanKey.KIND_SERVER.store_in_context(context, span)
        return context


_KIND_KEYS: dict[SpanKind, SpanKey] = {
    SpanKind.SERVER: SpanKey.KIND_SERVER,
    SpanKind.CLIENT: SpanKey.KIND_CLIENT,
    SpanKind.PRODUCER: SpanKey.KIND_PRODUCER,
    SpanKind.CONSUMER: SpanKey.KIND_CONSUMER,
}


class _DelegateBySpanKind:
    """One presence bit per kind; ``INTERNAL`` spans are never suppressed."""

    def should_suppress(self, parent_context: Context, kind: SpanKind) -> bool:
        key = _KIND_KEYS.get(kind)
        if key is None:
            return False
        return key.from_context_or_none(parent_context) is not None

    def store_in_context(self, context: Context, kind: SpanKind, span: Span) -> Context:
        key = _KIND_KEYS.get(kind)
        if key is None:
            return context
        return key.store_in_context(context, span)


class _BySpanKey:
    """Suppresses when every key contributed by the extractors is already set."""

    def __init__(self, span_keys: Iterable[SpanKey]) -> None:
        self._span_keys = tuple(span_keys)

    @property
    def span_keys(self) -> tuple[SpanKey, ...]:
        return self._span_keys

    def should_suppress(self, parent_context: Context, kind: SpanKind) -> bool:  # noqa: ARG002
        return all(key.from_context_or_none(parent_context) is not None for key in self._span_keys)

    def store_in_context(self, context: Context, kind: SpanKind, span: Span) -> Context:  # noqa: ARG002
        for key in self._span_keys:
            context = key.store_in_context(context, span)
        return context


class SpanSuppressionStrategy(enum.Enum):
    """How nested spans of the same operation kind are de-duplicated."""

    NONE = "none"
    SPAN_KIND = "span-kind"
    SEMCONV = "semconv"

    def create(self, span_keys: Iterable[SpanKey] = ()) -> SpanSuppressor:
        if self is SpanSuppressionStrategy.SPAN_KIND:
            return _DelegateBySpanKind()
        if self is SpanSuppressionStrategy.SEMCONV:
            keys = tuple(dict.fromkeys(span_keys))
            if keys:
                return _BySpanKey(keys)
        return _JustStoreServer()

    @classmethod
    def from_value(cls, value: str | None) -> "SpanSuppressionStrategy":
        """Parse a configuration value; unknown or empty values give ``SPAN_KIND``."""
        if not value:
            return cls.SPAN_KIND
        normalised = value.strip().lower().replace("_", "-")
        for member in cls:
            if member.value == normalised:
                return member
        return cls.SPAN_KIND


__all__ = ["SpanSuppressionStrategy", "SpanSuppressor"]
