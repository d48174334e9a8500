"""Semconv – ``code.*`` attributes for spans that represent a function call."""
from __future__ import annotations

from typing import Generic, TypeVar

from opentelemetry.context import Context

from mp_instrumentation.instrumenter.attributes import AttributesBuilder, set_attribute

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

CODE_NAMESPACE = "code.namespace"
CODE_FUNCTION = "code.function"


class CodeAttributesGetter(Generic[REQUEST]):
    def get_code_namespace(self, request: REQUEST) -> str | None:
        return None

    def get_method_name(self, request: REQUEST) -> str | None:
        return None


class CodeAttributesExtractor(Generic[REQUEST, RESPONSE]):
    def __init__(self, getter: CodeAttributesGetter[REQUEST]) -> None:
        self._getter = getter

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:  # noqa: ARG002
        set_attribute(attributes, CODE_NAMESPACE, self._getter.get_code_namespace(request))
        set_attribute(attributes, CODE_FUNCTION, self._getter.get_method_name(request))

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        pass


class CodeSpanNameExtractor(Generic[REQUEST]):
    """``"<last namespace segment>.<function>"``, e.g. ``"OrderService.place"``."""

    def __init__(self, getter: CodeAttributesGetter[REQUEST]) -> None:
        self._getter = getter

    def extract(self, request: REQUEST) -> str:
        namespace = self._getter.get_code_namespace(request)
        function = self._getter.get_method_name(request) or "<unknown>"
        if not namespace:
            return function
        return f"{namespace.rsplit('.', 1)[-1]}.{function}"


__all__ = [
    "CODE_FUNCTION",
    "CODE_NAMESPACE",
    "CodeAttributesExtractor",
    "CodeAttributesGetter",
    "CodeSpanNameExtractor",
]
