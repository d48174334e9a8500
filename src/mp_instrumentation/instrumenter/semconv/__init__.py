"""Semconv – built-in extractors for HTTP, database, network and code spans."""
from mp_instrumentation.instrumenter.semconv.code import (
    CodeAttributesExtractor,
    CodeAttributesGetter,
    CodeSpanNameExtractor,
)
from mp_instrumentation.instrumenter.semconv.db import (
    DbClientAttributesExtractor,
    DbClientAttributesGetter,
    DbClientSpanNameExtractor,
    SqlClientAttributesExtractor,
    SqlClientAttributesGetter,
)
from mp_instrumentation.instrumenter.semconv.http import (
    HttpClientAttributesExtractor,
    HttpClientAttributesGetter,
    HttpServerAttributesExtractor,
    HttpServerAttributesGetter,
    HttpSpanNameExtractor,
    HttpSpanStatusExtractor,
    HttpStatusCodeConverter,
)
from mp_instrumentation.instrumenter.semconv.metrics import (
    DurationMetrics,
    db_client_metrics,
    http_client_metrics,
    http_server_metrics,
)
from mp_instrumentation.instrumenter.semconv.network import (
    AddressAndPort,
    ClientAttributesExtractor,
    ClientAttributesGetter,
    NetworkAttributesExtractor,
    NetworkAttributesGetter,
    ServerAttributesExtractor,
    ServerAttributesGetter,
)
from mp_instrumentation.instrumenter.semconv.sql import SqlStatementInfo, SqlStatementSanitizer

__all__ = [
    "AddressAndPort",
    "ClientAttributesExtractor",
    "ClientAttributesGetter",
    "CodeAttributesExtractor",
    "CodeAttributesGetter",
    "CodeSpanNameExtractor",
    "DbClientAttributesExtractor",
    "DbClientAttributesGetter",
    "DbClientSpanNameExtractor",
    "DurationMetrics",
    "HttpClientAttributesExtractor",
    "HttpClientAttributesGetter",
    "HttpServerAttributesExtractor",
    "HttpServerAttributesGetter",
    "HttpSpanNameExtractor",
    "HttpSpanStatusExtractor",
    "HttpStatusCodeConverter",
    "NetworkAttributesExtractor",
    "NetworkAttributesGetter",
    "ServerAttributesExtractor",
    "ServerAttributesGetter",
    "SqlClientAttributesExtractor",
    "SqlClientAttributesGetter",
    "SqlStatementInfo",
    "SqlStatementSanitizer",
    "db_client_metrics",
    "http_client_metrics",
    "http_server_metrics",
]
