"""Observability – structured logging helpers."""
from mp_instrumentation.observability.logging.factory import JsonLoggerFactory
from mp_instrumentation.observability.logging.processors import TraceContextProcessor, get_logger

__all__ = ["JsonLoggerFactory", "TraceContextProcessor", "get_logger"]
