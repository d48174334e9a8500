"""Annotations – decorator-driven spans for plain functions and methods."""
from mp_instrumentation.annotations.with_span import INSTRUMENTATION_NAME, MethodRequest, with_span

__all__ = ["INSTRUMENTATION_NAME", "MethodRequest", "with_span"]
