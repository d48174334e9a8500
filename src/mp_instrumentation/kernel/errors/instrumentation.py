"""Instrumentation errors — misconfiguration of the telemetry pipeline itself.

Failures of the *instrumented* operation are never represented by these
classes: they are passed to ``Instrumenter.end`` as data.
"""

from __future__ import annotations

from typing import Any

from mp_instrumentation.kernel.errors.base import BaseError


class InstrumentationError(BaseError):
    """Root of all errors raised by the instrumentation library."""

    default_code = "instrumentation_error"


class InstrumenterConfigurationError(InstrumentationError):
    """An ``Instrumenter`` could not be built from the supplied configuration."""

    default_code = "instrumenter_configuration_error"

    def __init__(
        self,
        message: str,
        *,
        instrumentation_name: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.instrumentation_name = instrumentation_name


class RegistryClosedError(InstrumentationError):
    """A strategy was registered after the registry was shut down."""

    default_code = "registry_closed"

    def __init__(self, message: str = "Async strategy registry has been shut down", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


__all__ = [
    "InstrumentationError",
    "InstrumenterConfigurationError",
    "RegistryClosedError",
]
