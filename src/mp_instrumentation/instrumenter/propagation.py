"""Instrumenter – context propagation around ``start``.

The request object itself is the text-map carrier; *getter*/*setter*
know how to read and write its headers.
"""
from __future__ import annotations

from typing import Any

from opentelemetry.context import Context
from opentelemetry.propagate import get_global_textmap
from opentelemetry.propagators.textmap import Getter, Setter, TextMapPropagator


class ContextPropagation:
    """No propagation: the parent context is used as given."""

    def extract(self, parent_context: Context, request: Any) -> Context:  # noqa: ARG002
        return parent_context

    def inject(self, context: Context, request: Any) -> None:
        pass


class _TextMapPropagation(ContextPropagation):
    def __init__(self, propagator: TextMapPropagator | None) -> None:
        self._propagator = propagator

    @property
    def propagator(self) -> TextMapPropagator:
        # resolved per call so a later set_global_textmap() is honoured
        return self._propagator if self._propagator is not None else get_global_textmap()


class UpstreamPropagation(_TextMapPropagation):
    """Inbound: the remote parent read from the request replaces the caller's parent."""

    def __init__(self, getter: Getter[Any], propagator: TextMapPropagator | None = None) -> None:
        super().__init__(propagator)
        self._getter = getter

    def extract(self, parent_context: Context, request: Any) -> Context:
        return self.propagator.extract(request, context=parent_context, getter=self._getter)


class DownstreamPropagation(_TextMapPropagation):
    """Outbound: the new span's identifiers are written into the request."""

    def __init__(self, setter: Setter[Any], propagator: TextMapPropagator | None = None) -> None:
        super().__init__(propagator)
        self._setter = setter

    def inject(self, context: Context, request: Any) -> None:
        if request is None:
            return
        self.propagator.inject(request, context=context, setter=self._setter)


__all__ = ["ContextPropagation", "DownstreamPropagation", "UpstreamPropagation"]
