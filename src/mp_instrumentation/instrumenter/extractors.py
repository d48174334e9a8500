"""Instrumenter – extractor protocols and built-in implementations.

Each extractor contributes one facet of a span (name, kind, attributes,
links, status) from the opaque ``REQUEST``/``RESPONSE`` pair.  They are
invoked by :class:`~mp_instrumentation.instrumenter.Instrumenter` at fixed
lifecycle points, in builder-registration order.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, TypeVar, runtime_checkable

from opentelemetry.context import Context
from opentelemetry.trace import Link, Span, SpanContext, SpanKind, Status, StatusCode

from mp_instrumentation.instrumenter.attributes import AttributesBuilder
from mp_instrumentation.instrumenter.span_key import SpanKey

REQUEST = TypeVar("REQUEST", contravariant=True)
RESPONSE = TypeVar("RESPONSE", contravariant=True)


# ---------------------------------------------------------------------------
# Builders handed to extractors
# ---------------------------------------------------------------------------


class SpanLinksBuilder:
    """Collects links for a span that has not been started yet."""

    def __init__(self) -> None:
        self._links: list[Link] = []

    def add_link(self, span_context: SpanContext, attributes: Mapping[str, Any] | None = None) -> "SpanLinksBuilder":
        if not span_context.is_valid:
            return self
        self._links.append(Link(span_context, attributes))
        return self

    @property
    def links(self) -> list[Link]:
        return list(self._links)


class SpanStatusBuilder:
    """Sets the final status of the span being ended."""

    def __init__(self, span: Span) -> None:
        self._span = span

    def set_status(self, code: StatusCode, description: str | None = None) -> "SpanStatusBuilder":
        if code is StatusCode.ERROR:
            self._span.set_status(Status(code, description))
        else:
            # descriptions are only meaningful for ERROR
            self._span.set_status(Status(code))
        return self


# ---------------------------------------------------------------------------
# Extractor protocols
# ---------------------------------------------------------------------------


class SpanNameExtractor(Protocol[REQUEST]):
    def extract(self, request: REQUEST) -> str: ...


class SpanKindExtractor(Protocol[REQUEST]):
    def extract(self, request: REQUEST) -> SpanKind: ...


class AttributesExtractor(Protocol[REQUEST, RESPONSE]):
    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None: ...

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None: ...


class SpanLinksExtractor(Protocol[REQUEST]):
    def extract(self, links: SpanLinksBuilder, parent_context: Context, request: REQUEST) -> None: ...


class SpanStatusExtractor(Protocol[REQUEST, RESPONSE]):
    def extract(
        self,
        status: SpanStatusBuilder,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None: ...


class ErrorCauseExtractor(Protocol):
    def extract(self, error: BaseException) -> BaseException: ...


class ContextCustomizer(Protocol[REQUEST]):
    """Runs after attribute ``on_start`` and before the span is created."""

    def on_start(self, context: Context, request: REQUEST, start_attributes: AttributesBuilder) -> Context: ...


class OperationListener(Protocol):
    """Observes operation start/end, typically to record metrics.

    ``on_end`` hooks run in reverse registration order.
    """

    def on_start(self, context: Context, start_attributes: AttributesBuilder, start_nanos: int) -> Context: ...

    def on_end(self, context: Context, end_attributes: AttributesBuilder, end_nanos: int) -> None: ...


@runtime_checkable
class SpanKeyProvider(Protocol):
    """Attributes extractors exposing this declare which span key they represent."""

    @property
    def span_key(self) -> SpanKey | None: ...


# ---------------------------------------------------------------------------
# Built-ins
# ---------------------------------------------------------------------------


class _ConstantSpanKindExtractor:
    __slots__ = ("_kind",)

    def __init__(self, kind: SpanKind) -> None:
        self._kind = kind

    def extract(self, request: Any) -> SpanKind:  # noqa: ARG002
        return self._kind

    def __repr__(self) -> str:
        return f"SpanKindExtractor.always({self._kind.name})"


class SpanKindExtractors:
    """Factories for span kind extractors that ignore the request."""

    @staticmethod
    def always(kind: SpanKind) -> SpanKindExtractor[Any]:
        return _ConstantSpanKindExtractor(kind)

    @staticmethod
    def always_internal() -> SpanKindExtractor[Any]:
        return _ConstantSpanKindExtractor(SpanKind.INTERNAL)

    @staticmethod
    def always_client() -> SpanKindExtractor[Any]:
        return _ConstantSpanKindExtractor(SpanKind.CLIENT)

    @staticmethod
    def always_server() -> SpanKindExtractor[Any]:
        return _ConstantSpanKindExtractor(SpanKind.SERVER)

    @staticmethod
    def always_producer() -> SpanKindExtractor[Any]:
        return _ConstantSpanKindExtractor(SpanKind.PRODUCER)

    @staticmethod
    def always_consumer() -> SpanKindExtractor[Any]:
        return _ConstantSpanKindExtractor(SpanKind.CONSUMER)


class ConstantSpanNameExtractor:
    """Always returns the same span name."""

    def __init__(self, name: str) -> None:
        self._name = name

    def extract(self, request: Any) -> str:  # noqa: ARG002
        return self._name


class DefaultSpanStatusExtractor:
    """Marks the span as ``ERROR`` when the operation failed; otherwise leaves it unset."""

    def extract(
        self,
        status: SpanStatusBuilder,
        request: Any,  # noqa: ARG002
        response: Any,  # noqa: ARG002
        error: BaseException | None,
    ) -> None:
        if error is not None:
            status.set_status(StatusCode.ERROR)


class DefaultErrorCauseExtractor:
    """Records the error exactly as it was raised."""

    def extract(self, error: BaseException) -> BaseException:
        return error


class UnwrappingErrorCauseExtractor:
    """Strips wrapper exceptions to reach the failure that actually happened.

    While the error is an instance of one of *wrapper_types* and carries a
    ``__cause__``, it is replaced by that cause.
    """

    def __init__(self, wrapper_types: Iterable[type[BaseException]]) -> None:
        self._wrapper_types = tuple(wrapper_types)

    def extract(self, error: BaseException) -> BaseException:
        seen: set[int] = set()
        while (
            isinstance(error, self._wrapper_types)
            and error.__cause__ is not None
            and id(error) not in seen
        ):
            seen.add(id(error))
            error = error.__cause__
        return error


class ConstantAttributesExtractor:
    """Writes one fixed key/value pair on start."""

    def __init__(self, key: str, value: Any) -> None:
        self._key = key
        self._value = value

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: Any) -> None:  # noqa: ARG002
        attributes.put(self._key, self._value)

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,
        request: Any,
        response: Any,
        error: BaseException | None,
    ) -> None:
        pass


__all__ = [
    "AttributesExtractor",
    "ConstantAttributesExtractor",
    "ConstantSpanNameExtractor",
    "ContextCustomizer",
    "DefaultErrorCauseExtractor",
    "DefaultSpanStatusExtractor",
    "ErrorCauseExtractor",
    "OperationListener",
    "SpanKeyProvider",
    "SpanKindExtractor",
    "SpanKindExtractors",
    "SpanLinksBuilder",
    "SpanLinksExtractor",
    "SpanNameExtractor",
    "SpanStatusBuilder",
    "SpanStatusExtractor",
    "UnwrappingErrorCauseExtractor",
]
