"""Config settings – InstrumentationSettings."""
from __future__ import annotations

import dataclasses
from typing import ClassVar

from mp_instrumentation.config.settings.base import Settings
from mp_instrumentation.config.validation import InvalidSettingValueError

SPAN_SUPPRESSION_STRATEGIES: tuple[str, ...] = ("none", "span-kind", "semconv")

DEFAULT_HTTP_KNOWN_METHODS: tuple[str, ...] = (
    "CONNECT",
    "DELETE",
    "GET",
    "HEAD",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
    "TRACE",
)


@dataclasses.dataclass
class InstrumentationSettings(Settings):
    """Knobs recognised when an ``Instrumenter`` is built.

    Every field can be supplied through ``OTEL_INSTRUMENTATION_<FIELD>``,
    e.g. ``OTEL_INSTRUMENTATION_ENABLED=false`` or
    ``OTEL_INSTRUMENTATION_HTTP_CAPTURED_REQUEST_HEADERS=x-tenant,x-request-id``.
    """

    _prefix: ClassVar[str] = "OTEL_INSTRUMENTATION"

    enabled: bool = True
    span_suppression_strategy: str = "span-kind"
    experimental_span_attributes: bool = False
    fail_soft: bool = False
    http_known_methods: list[str] = dataclasses.field(
        default_factory=lambda: list(DEFAULT_HTTP_KNOWN_METHODS)
    )
    http_captured_request_headers: list[str] = dataclasses.field(default_factory=list)
    http_captured_response_headers: list[str] = dataclasses.field(default_factory=list)

    def _validate(self) -> None:
        strategy = self.span_suppression_strategy.strip().lower().replace("_", "-")
        if strategy not in SPAN_SUPPRESSION_STRATEGIES:
            raise InvalidSettingValueError(
                "span_suppression_strategy",
                self.span_suppression_strategy,
                f"expected one of {', '.join(SPAN_SUPPRESSION_STRATEGIES)}",
            )
        self.span_suppression_strategy = strategy
        self.http_known_methods = [m.strip().upper() for m in self.http_known_methods if m.strip()]


__all__ = [
    "DEFAULT_HTTP_KNOWN_METHODS",
    "SPAN_SUPPRESSION_STRATEGIES",
    "InstrumentationSettings",
]
