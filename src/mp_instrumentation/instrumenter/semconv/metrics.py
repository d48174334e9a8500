"""Semconv – duration histograms as operation listeners.

Usage::

    builder.set_metrics(OtelMetrics()).add_operation_metrics(http_server_metrics)
"""
from __future__ import annotations

import dataclasses
from typing import Iterable

from opentelemetry import context as otel_context
from opentelemetry.context import Context
from opentelemetry.semconv._incubating.attributes import db_attributes
from opentelemetry.semconv._incubating.metrics import db_metrics
from opentelemetry.semconv.attributes import (
    error_attributes,
    http_attributes,
    network_attributes,
    server_attributes,
    url_attributes,
)
from opentelemetry.semconv.metrics import http_metrics

from mp_instrumentation.instrumenter.attributes import AttributesBuilder
from mp_instrumentation.observability.logging import get_logger
from mp_instrumentation.observability.metrics import Metrics

_log = get_logger(__name__)

_NANOS_PER_SECOND = 1_000_000_000

HTTP_CLIENT_DURATION = http_metrics.HTTP_CLIENT_REQUEST_DURATION
HTTP_SERVER_DURATION = http_metrics.HTTP_SERVER_REQUEST_DURATION
DB_CLIENT_DURATION = db_metrics.DB_CLIENT_OPERATION_DURATION

HTTP_CLIENT_METRIC_ATTRIBUTES: tuple[str, ...] = (
    http_attributes.HTTP_REQUEST_METHOD,
    http_attributes.HTTP_RESPONSE_STATUS_CODE,
    error_attributes.ERROR_TYPE,
    server_attributes.SERVER_ADDRESS,
    server_attributes.SERVER_PORT,
    network_attributes.NETWORK_PROTOCOL_NAME,
    network_attributes.NETWORK_PROTOCOL_VERSION,
    url_attributes.URL_SCHEME,
)
HTTP_SERVER_METRIC_ATTRIBUTES: tuple[str, ...] = (
    http_attributes.HTTP_REQUEST_METHOD,
    http_attributes.HTTP_RESPONSE_STATUS_CODE,
    http_attributes.HTTP_ROUTE,
    error_attributes.ERROR_TYPE,
    network_attributes.NETWORK_PROTOCOL_NAME,
    network_attributes.NETWORK_PROTOCOL_VERSION,
    url_attributes.URL_SCHEME,
)
DB_CLIENT_METRIC_ATTRIBUTES: tuple[str, ...] = (
    db_attributes.DB_SYSTEM,
    db_attributes.DB_NAME,
    db_attributes.DB_OPERATION,
    server_attributes.SERVER_ADDRESS,
    server_attributes.SERVER_PORT,
    error_attributes.ERROR_TYPE,
)


@dataclasses.dataclass(frozen=True)
class _State:
    start_attributes: dict
    start_nanos: int


class DurationMetrics:
    """Records the operation duration (seconds) into a histogram.

    Only attributes named in *allowed_attributes* become metric
    dimensions; end values win over start values.
    """

    def __init__(
        self,
        metrics: Metrics,
        name: str,
        description: str,
        allowed_attributes: Iterable[str],
    ) -> None:
        self._name = name
        self._histogram = metrics.histogram(name, description=description, unit="s")
        self._allowed = tuple(allowed_attributes)
        self._state_key = otel_context.create_key(f"mp-instrumentation-duration-{name}")

    def on_start(self, context: Context, start_attributes: AttributesBuilder, start_nanos: int) -> Context:
        state = _State(start_attributes.as_dict(), start_nanos)
        return otel_context.set_value(self._state_key, state, context)

    def on_end(self, context: Context, end_attributes: AttributesBuilder, end_nanos: int) -> None:
        state: _State | None = otel_context.get_value(self._state_key, context)
        if state is None:
            _log.debug("duration_metric_missing_start", metric=self._name)
            return
        merged = {**state.start_attributes, **end_attributes.as_dict()}
        dimensions = {k: merged[k] for k in self._allowed if k in merged}
        self._histogram.record((end_nanos - state.start_nanos) / _NANOS_PER_SECOND, dimensions)


def http_client_metrics(metrics: Metrics) -> DurationMetrics:
    return DurationMetrics(
        metrics, HTTP_CLIENT_DURATION, "Duration of HTTP client requests.", HTTP_CLIENT_METRIC_ATTRIBUTES
    )


def http_server_metrics(metrics: Metrics) -> DurationMetrics:
    return DurationMetrics(
        metrics, HTTP_SERVER_DURATION, "Duration of HTTP server requests.", HTTP_SERVER_METRIC_ATTRIBUTES
    )


def db_client_metrics(metrics: Metrics) -> DurationMetrics:
    return DurationMetrics(
        metrics, DB_CLIENT_DURATION, "Duration of database client operations.", DB_CLIENT_METRIC_ATTRIBUTES
    )


__all__ = [
    "DB_CLIENT_DURATION",
    "HTTP_CLIENT_DURATION",
    "HTTP_SERVER_DURATION",
    "DurationMetrics",
    "db_client_metrics",
    "http_client_metrics",
    "http_server_metrics",
]
