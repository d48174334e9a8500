"""Semconv – database client span names and attributes."""
from __future__ import annotations

from typing import Generic, TypeVar

from opentelemetry.context import Context
from opentelemetry.semconv._incubating.attributes import db_attributes

from mp_instrumentation.instrumenter.attributes import AttributesBuilder, set_attribute
from mp_instrumentation.instrumenter.semconv.sql import SqlStatementInfo, SqlStatementSanitizer
from mp_instrumentation.instrumenter.span_key import SpanKey

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

DB_SYSTEM = db_attributes.DB_SYSTEM
DB_USER = db_attributes.DB_USER
DB_NAME = db_attributes.DB_NAME
DB_CONNECTION_STRING = db_attributes.DB_CONNECTION_STRING
DB_STATEMENT = db_attributes.DB_STATEMENT
DB_OPERATION = db_attributes.DB_OPERATION
DB_SQL_TABLE = db_attributes.DB_SQL_TABLE

DEFAULT_SPAN_NAME = "DB Query"


# ---------------------------------------------------------------------------
# Getters
# ---------------------------------------------------------------------------


class _DbClientCommonAttributesGetter(Generic[REQUEST]):
    def get_system(self, request: REQUEST) -> str | None:
        return None

    def get_user(self, request: REQUEST) -> str | None:
        return None

    def get_name(self, request: REQUEST) -> str | None:
        return None

    def get_connection_string(self, request: REQUEST) -> str | None:
        return None


class DbClientAttributesGetter(_DbClientCommonAttributesGetter[REQUEST]):
    """For non-SQL stores (Redis, MongoDB, ...), where the operation is known up front."""

    def get_statement(self, request: REQUEST) -> str | None:
        return None

    def get_operation(self, request: REQUEST) -> str | None:
        return None


class SqlClientAttributesGetter(_DbClientCommonAttributesGetter[REQUEST]):
    """For SQL drivers; operation and table are parsed from the raw statement."""

    def get_raw_statement(self, request: REQUEST) -> str | None:
        return None


# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------


def compute_span_name(db_name: str | None, operation: str | None, main_identifier: str | None) -> str:
    """``<operation> <db.name>[.<identifier>]``, degrading to ``db.name`` or ``"DB Query"``.

    An identifier that is already qualified (``schema.table``) is not
    prefixed with the database name.
    """
    if operation is None:
        return DEFAULT_SPAN_NAME if db_name is None else db_name

    name = operation
    if db_name is not None or main_identifier is not None:
        name += " "
    if db_name is not None and (main_identifier is None or "." not in main_identifier):
        name += db_name
        if main_identifier is not None:
            name += "."
    if main_identifier is not None:
        name += main_identifier
    return name


class DbClientSpanNameExtractor:
    """Factory for database span name extractors."""

    @staticmethod
    def create(
        getter: DbClientAttributesGetter[REQUEST] | SqlClientAttributesGetter[REQUEST],
    ) -> "GenericDbClientSpanNameExtractor[REQUEST] | SqlClientSpanNameExtractor[REQUEST]":
        if isinstance(getter, SqlClientAttributesGetter):
            return SqlClientSpanNameExtractor(getter)
        return GenericDbClientSpanNameExtractor(getter)


class GenericDbClientSpanNameExtractor(Generic[REQUEST]):
    def __init__(self, getter: DbClientAttributesGetter[REQUEST]) -> None:
        self._getter = getter

    def extract(self, request: REQUEST) -> str:
        return compute_span_name(self._getter.get_name(request), self._getter.get_operation(request), None)


class SqlClientSpanNameExtractor(Generic[REQUEST]):
    _sanitizer = SqlStatementSanitizer.create(True)

    def __init__(self, getter: SqlClientAttributesGetter[REQUEST]) -> None:
        self._getter = getter

    def extract(self, request: REQUEST) -> str:
        info = self._sanitizer.sanitize(self._getter.get_raw_statement(request))
        return compute_span_name(self._getter.get_name(request), info.operation, info.main_identifier)


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------


class _DbClientCommonAttributesExtractor(Generic[REQUEST, RESPONSE]):
    def __init__(self, getter: _DbClientCommonAttributesGetter[REQUEST]) -> None:
        self._common_getter = getter

    @property
    def span_key(self) -> SpanKey:
        return SpanKey.DB_CLIENT

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:  # noqa: ARG002
        g = self._common_getter
        set_attribute(attributes, DB_SYSTEM, g.get_system(request))
        set_attribute(attributes, DB_USER, g.get_user(request))
        set_attribute(attributes, DB_NAME, g.get_name(request))
        set_attribute(attributes, DB_CONNECTION_STRING, g.get_connection_string(request))

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        pass


class DbClientAttributesExtractor(_DbClientCommonAttributesExtractor[REQUEST, RESPONSE]):
    """``db.*`` attributes taken verbatim from the getter."""

    def __init__(self, getter: DbClientAttributesGetter[REQUEST]) -> None:
        super().__init__(getter)
        self._getter = getter

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:
        super().on_start(attributes, parent_context, request)
        set_attribute(attributes, DB_STATEMENT, self._getter.get_statement(request))
        set_attribute(attributes, DB_OPERATION, self._getter.get_operation(request))


class SqlClientAttributesExtractor(_DbClientCommonAttributesExtractor[REQUEST, RESPONSE]):
    """``db.*`` attributes with the statement sanitised and summarised."""

    def __init__(
        self,
        getter: SqlClientAttributesGetter[REQUEST],
        *,
        statement_sanitization_enabled: bool = True,
        table_attribute: str | None = DB_SQL_TABLE,
    ) -> None:
        super().__init__(getter)
        self._getter = getter
        self._sanitizer = SqlStatementSanitizer.create(statement_sanitization_enabled)
        self._table_attribute = table_attribute

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:
        super().on_start(attributes, parent_context, request)
        info: SqlStatementInfo = self._sanitizer.sanitize(self._getter.get_raw_statement(request))
        set_attribute(attributes, DB_STATEMENT, info.full_statement)
        set_attribute(attributes, DB_OPERATION, info.operation)
        if self._table_attribute is not None:
            set_attribute(attributes, self._table_attribute, info.main_identifier)


__all__ = [
    "DB_CONNECTION_STRING",
    "DB_NAME",
    "DB_OPERATION",
    "DB_SQL_TABLE",
    "DB_STATEMENT",
    "DB_SYSTEM",
    "DB_USER",
    "DEFAULT_SPAN_NAME",
    "DbClientAttributesExtractor",
    "DbClientAttributesGetter",
    "DbClientSpanNameExtractor",
    "GenericDbClientSpanNameExtractor",
    "SqlClientAttributesExtractor",
    "SqlClientAttributesGetter",
    "SqlClientSpanNameExtractor",
    "compute_span_name",
]
