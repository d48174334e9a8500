"""Semconv – HTTP client and server extractors.

Getters adapt a concrete HTTP library's request/response objects; the
extractors here turn them into the stable ``http.*`` / ``url.*`` /
``server.*`` / ``client.*`` attributes, span names and span status.

Usage::

    class RequestsGetter(HttpClientAttributesGetter[PreparedRequest, Response]):
        def get_http_request_method(self, request):
            return request.method

        def get_url_full(self, request):
            return request.url

        ...

    getter = RequestsGetter()
    instrumenter = (
        Instrumenter.builder("requests", HttpSpanNameExtractor.create(getter))
        .set_span_status_extractor(HttpSpanStatusExtractor.create(getter))
        .add_attributes_extractor(HttpClientAttributesExtractor(getter))
        .add_operation_metrics(http_client_metrics)
        .build_client_instrumenter(HeadersSetter())
    )
"""
from __future__ import annotations

import enum
from typing import Generic, Iterable, TypeVar
from urllib.parse import urlsplit

from opentelemetry.context import Context
from opentelemetry.semconv.attributes import (
    error_attributes,
    http_attributes,
    url_attributes,
    user_agent_attributes,
)
from opentelemetry.trace import StatusCode

from mp_instrumentation.config.settings import DEFAULT_HTTP_KNOWN_METHODS, InstrumentationSettings
from mp_instrumentation.instrumenter.attributes import AttributesBuilder, set_attribute
from mp_instrumentation.instrumenter.extractors import DefaultSpanStatusExtractor, SpanStatusBuilder
from mp_instrumentation.instrumenter.semconv.network import (
    AddressAndPort,
    ClientAttributesExtractor,
    ClientAttributesGetter,
    NetworkAttributesExtractor,
    NetworkAttributesGetter,
    ServerAttributesExtractor,
    ServerAttributesGetter,
)
from mp_instrumentation.instrumenter.span_key import SpanKey

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

OTHER_METHOD = "_OTHER"
HTTP_REQUEST_BODY_SIZE = "http.request.body.size"
HTTP_RESPONSE_BODY_SIZE = "http.response.body.size"


def request_header_attribute(name: str) -> str:
    return f"http.request.header.{name.lower()}"


def response_header_attribute(name: str) -> str:
    return f"http.response.header.{name.lower()}"


# ---------------------------------------------------------------------------
# Getters
# ---------------------------------------------------------------------------


class HttpCommonAttributesGetter(Generic[REQUEST, RESPONSE]):
    """Accessors shared by HTTP clients and servers.

    Header lookups receive a lowercase *name* and return every value of
    that header, or an empty list.
    """

    def get_http_request_method(self, request: REQUEST) -> str | None:
        return None

    def get_http_request_header(self, request: REQUEST, name: str) -> list[str]:
        return []

    def get_http_response_status_code(
        self, request: REQUEST, response: RESPONSE, error: BaseException | None
    ) -> int | None:
        return None

    def get_http_response_header(self, request: REQUEST, response: RESPONSE, name: str) -> list[str]:
        return []

    def get_error_type(
        self, request: REQUEST, response: RESPONSE | None, error: BaseException | None
    ) -> str | None:
        return None


class HttpClientAttributesGetter(
    HttpCommonAttributesGetter[REQUEST, RESPONSE],
    ServerAttributesGetter[REQUEST],
    NetworkAttributesGetter[REQUEST, RESPONSE],
):
    def get_url_full(self, request: REQUEST) -> str | None:
        return None


class HttpServerAttributesGetter(
    HttpCommonAttributesGetter[REQUEST, RESPONSE],
    ServerAttributesGetter[REQUEST],
    ClientAttributesGetter[REQUEST],
    NetworkAttributesGetter[REQUEST, RESPONSE],
):
    def get_url_scheme(self, request: REQUEST) -> str | None:
        return None

    def get_url_path(self, request: REQUEST) -> str | None:
        return None

    def get_url_query(self, request: REQUEST) -> str | None:
        return None

    def get_http_route(self, request: REQUEST) -> str | None:
        return None


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


class HttpStatusCodeConverter(enum.Enum):
    """Which HTTP status codes count as errors for each side of the call."""

    CLIENT = "client"
    SERVER = "server"

    def is_error(self, status_code: int) -> bool:
        if status_code < 100:
            return True
        return status_code >= (400 if self is HttpStatusCodeConverter.CLIENT else 500)


class HttpSpanStatusExtractor(Generic[REQUEST, RESPONSE]):
    """``ERROR`` for error status codes, otherwise the default rule."""

    def __init__(
        self,
        getter: HttpCommonAttributesGetter[REQUEST, RESPONSE],
        converter: HttpStatusCodeConverter,
    ) -> None:
        self._getter = getter
        self._converter = converter
        self._fallback = DefaultSpanStatusExtractor()

    @classmethod
    def create(cls, getter: HttpCommonAttributesGetter[REQUEST, RESPONSE]) -> "HttpSpanStatusExtractor[REQUEST, RESPONSE]":
        converter = (
            HttpStatusCodeConverter.SERVER
            if isinstance(getter, HttpServerAttributesGetter)
            else HttpStatusCodeConverter.CLIENT
        )
        return cls(getter, converter)

    def extract(
        self,
        status: SpanStatusBuilder,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        if response is not None:
            status_code = self._getter.get_http_response_status_code(request, response, error)
            if status_code is not None and self._converter.is_error(status_code):
                status.set_status(StatusCode.ERROR)
                return
        self._fallback.extract(status, request, response, error)


# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------


class HttpSpanNameExtractor(Generic[REQUEST]):
    """``"GET"`` for clients, ``"GET /users/{id}"`` for routed server requests.

    Missing or unknown methods give ``"HTTP"``.
    """

    def __init__(
        self,
        getter: HttpCommonAttributesGetter[REQUEST, object],
        known_methods: Iterable[str] = DEFAULT_HTTP_KNOWN_METHODS,
    ) -> None:
        self._getter = getter
        self._known_methods = frozenset(known_methods)

    @classmethod
    def create(
        cls,
        getter: HttpCommonAttributesGetter[REQUEST, object],
        known_methods: Iterable[str] = DEFAULT_HTTP_KNOWN_METHODS,
    ) -> "HttpSpanNameExtractor[REQUEST]":
        return cls(getter, known_methods)

    def extract(self, request: REQUEST) -> str:
        method = self._getter.get_http_request_method(request)
        if method is None or method not in self._known_methods:
            return "HTTP"
        if isinstance(self._getter, HttpServerAttributesGetter):
            route = self._getter.get_http_route(request)
            if route:
                return f"{method} {route}"
        return method


# ---------------------------------------------------------------------------
# Address fallbacks
# ---------------------------------------------------------------------------


def _first(values: list[str]) -> str | None:
    return values[0] if values else None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _port_end(header: str, start: int, end: int) -> int:
    i = start
    while i < end and header[i].isdigit():
        i += 1
    return i


def _extract_client_info(sink: AddressAndPort, header: str, start: int, end: int) -> bool:
    if start >= end:
        return False

    if header[start] == '"':
        quote_end = header.find('"', start + 1)
        if quote_end < 0 or quote_end >= end:
            return False
        return _extract_client_info(sink, header, start + 1, quote_end)

    if header[start] == "[":
        ipv6_end = header.find("]", start + 1)
        if ipv6_end < 0 or ipv6_end >= end:
            return False
        sink.set_address(header[start + 1 : ipv6_end])
        port_start = ipv6_end + 1
        if port_start < end and header[port_start] == ":":
            sink.set_port(_parse_int(header[port_start + 1 : _port_end(header, port_start + 1, end)] or None))
        return True

    in_ipv4 = False
    for i in range(start, end):
        c = header[i]
        if c == ".":
            in_ipv4 = True
        ipv4_port_separator = in_ipv4 and c == ":"
        if c in ',;"' or ipv4_port_separator:
            if i == start:
                return False
            sink.set_address(header[start:i])
            if ipv4_port_separator:
                sink.set_port(_parse_int(header[i + 1 : _port_end(header, i + 1, end)] or None))
            return True

    sink.set_address(header[start:end])
    return True


def parse_forwarded(sink: AddressAndPort, forwarded: str) -> bool:
    """Fill *sink* from the first ``for=`` element of a ``Forwarded`` header."""
    start = forwarded.lower().find("for=")
    if start < 0:
        return False
    start += 4
    if start >= len(forwarded) - 1:
        return False
    end = forwarded.find(";", start)
    if end < 0:
        end = len(forwarded)
    return _extract_client_info(sink, forwarded, start, end)


def parse_forwarded_for(sink: AddressAndPort, forwarded_for: str) -> bool:
    """Fill *sink* from the first address of an ``X-Forwarded-For`` header."""
    return _extract_client_info(sink, forwarded_for, 0, len(forwarded_for))


class ForwardedClientAddressExtractor(Generic[REQUEST]):
    """Client address fallback from ``Forwarded`` then ``X-Forwarded-For``."""

    def __init__(self, getter: HttpCommonAttributesGetter[REQUEST, object]) -> None:
        self._getter = getter

    def __call__(self, sink: AddressAndPort, request: REQUEST) -> None:
        for forwarded in self._getter.get_http_request_header(request, "forwarded"):
            if parse_forwarded(sink, forwarded):
                return
        for forwarded_for in self._getter.get_http_request_header(request, "x-forwarded-for"):
            if parse_forwarded_for(sink, forwarded_for):
                return


class HostHeaderServerAddressExtractor(Generic[REQUEST]):
    """Server address fallback from the ``Host`` header."""

    def __init__(self, getter: HttpCommonAttributesGetter[REQUEST, object]) -> None:
        self._getter = getter

    def __call__(self, sink: AddressAndPort, request: REQUEST) -> None:
        host = _first(self._getter.get_http_request_header(request, "host"))
        if not host:
            return
        try:
            parsed = urlsplit(f"//{host}")
            sink.set_address(parsed.hostname)
            sink.set_port(parsed.port)
        except ValueError:
            sink.set_address(host)


class UrlServerAddressExtractor(Generic[REQUEST]):
    """Server address fallback from the client's full request URL."""

    def __init__(self, getter: HttpClientAttributesGetter[REQUEST, object]) -> None:
        self._getter = getter

    def __call__(self, sink: AddressAndPort, request: REQUEST) -> None:
        url = self._getter.get_url_full(request)
        if not url:
            return
        try:
            parsed = urlsplit(url)
            sink.set_address(parsed.hostname)
            port = parsed.port
        except ValueError:
            return
        if port is None:
            port = {"http": 80, "https": 443}.get(parsed.scheme)
        sink.set_port(port)


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------


class _HttpCommonAttributesExtractor(Generic[REQUEST, RESPONSE]):
    def __init__(
        self,
        getter: HttpCommonAttributesGetter[REQUEST, RESPONSE],
        converter: HttpStatusCodeConverter,
        *,
        captured_request_headers: Iterable[str] = (),
        captured_response_headers: Iterable[str] = (),
        known_methods: Iterable[str] = DEFAULT_HTTP_KNOWN_METHODS,
    ) -> None:
        self._getter = getter
        self._converter = converter
        self._captured_request_headers = tuple(h.lower() for h in captured_request_headers)
        self._captured_response_headers = tuple(h.lower() for h in captured_response_headers)
        self._known_methods = frozenset(known_methods)

    @classmethod
    def from_settings(
        cls,
        getter: HttpCommonAttributesGetter[REQUEST, RESPONSE],
        settings: InstrumentationSettings,
    ) -> "_HttpCommonAttributesExtractor[REQUEST, RESPONSE]":
        """Build with the captured headers and known methods from *settings*."""
        return cls(
            getter,
            captured_request_headers=settings.http_captured_request_headers,
            captured_response_headers=settings.http_captured_response_headers,
            known_methods=settings.http_known_methods,
        )

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:  # noqa: ARG002
        method = self._getter.get_http_request_method(request)
        if method is None or method in self._known_methods:
            set_attribute(attributes, http_attributes.HTTP_REQUEST_METHOD, method)
        else:
            attributes.put(http_attributes.HTTP_REQUEST_METHOD, OTHER_METHOD)
            attributes.put(http_attributes.HTTP_REQUEST_METHOD_ORIGINAL, method)

        set_attribute(
            attributes,
            user_agent_attributes.USER_AGENT_ORIGINAL,
            _first(self._getter.get_http_request_header(request, "user-agent")),
        )

        for name in self._captured_request_headers:
            values = self._getter.get_http_request_header(request, name)
            if values:
                attributes.put(request_header_attribute(name), list(values))

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,  # noqa: ARG002
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        set_attribute(
            attributes,
            HTTP_REQUEST_BODY_SIZE,
            _parse_int(_first(self._getter.get_http_request_header(request, "content-length"))),
        )

        status_code: int | None = None
        if response is not None:
            status_code = self._getter.get_http_response_status_code(request, response, error)
            if status_code is not None and status_code > 0:
                attributes.put(http_attributes.HTTP_RESPONSE_STATUS_CODE, status_code)
            else:
                status_code = None

            set_attribute(
                attributes,
                HTTP_RESPONSE_BODY_SIZE,
                _parse_int(_first(self._getter.get_http_response_header(request, response, "content-length"))),
            )

            for name in self._captured_response_headers:
                values = self._getter.get_http_response_header(request, response, name)
                if values:
                    attributes.put(response_header_attribute(name), list(values))

        error_type: str | None = None
        if status_code is not None:
            if self._converter.is_error(status_code):
                error_type = str(status_code)
        else:
            error_type = self._getter.get_error_type(request, response, error)
            if error_type is None and error is not None:
                error_type = f"{type(error).__module__}.{type(error).__qualname__}"
        set_attribute(attributes, error_attributes.ERROR_TYPE, error_type)


class HttpClientAttributesExtractor(_HttpCommonAttributesExtractor[REQUEST, RESPONSE]):
    """Stable HTTP client attributes; suppresses by :data:`SpanKey.HTTP_CLIENT`."""

    def __init__(
        self,
        getter: HttpClientAttributesGetter[REQUEST, RESPONSE],
        *,
        captured_request_headers: Iterable[str] = (),
        captured_response_headers: Iterable[str] = (),
        known_methods: Iterable[str] = DEFAULT_HTTP_KNOWN_METHODS,
    ) -> None:
        super().__init__(
            getter,
            HttpStatusCodeConverter.CLIENT,
            captured_request_headers=captured_request_headers,
            captured_response_headers=captured_response_headers,
            known_methods=known_methods,
        )
        self._client_getter = getter
        self._server = ServerAttributesExtractor(getter, UrlServerAddressExtractor(getter))
        self._network = NetworkAttributesExtractor(getter)

    @property
    def span_key(self) -> SpanKey:
        return SpanKey.HTTP_CLIENT

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:
        super().on_start(attributes, parent_context, request)
        set_attribute(attributes, url_attributes.URL_FULL, self._client_getter.get_url_full(request))
        self._server.on_start(attributes, parent_context, request)

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        super().on_end(attributes, context, request, response, error)
        self._network.on_end(attributes, context, request, response, error)


class HttpServerAttributesExtractor(_HttpCommonAttributesExtractor[REQUEST, RESPONSE]):
    """Stable HTTP server attributes; suppresses by :data:`SpanKey.HTTP_SERVER`."""

    def __init__(
        self,
        getter: HttpServerAttributesGetter[REQUEST, RESPONSE],
        *,
        captured_request_headers: Iterable[str] = (),
        captured_response_headers: Iterable[str] = (),
        known_methods: Iterable[str] = DEFAULT_HTTP_KNOWN_METHODS,
    ) -> None:
        super().__init__(
            getter,
            HttpStatusCodeConverter.SERVER,
            captured_request_headers=captured_request_headers,
            captured_response_headers=captured_response_headers,
            known_methods=known_methods,
        )
        self._server_getter = getter
        self._server = ServerAttributesExtractor(getter, HostHeaderServerAddressExtractor(getter))
        self._client = ClientAttributesExtractor(getter, ForwardedClientAddressExtractor(getter))
        self._network = NetworkAttributesExtractor(getter)

    @property
    def span_key(self) -> SpanKey:
        return SpanKey.HTTP_SERVER

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:
        super().on_start(attributes, parent_context, request)
        g = self._server_getter
        set_attribute(attributes, url_attributes.URL_SCHEME, g.get_url_scheme(request))
        set_attribute(attributes, url_attributes.URL_PATH, g.get_url_path(request))
        set_attribute(attributes, url_attributes.URL_QUERY, g.get_url_query(request))
        set_attribute(attributes, http_attributes.HTTP_ROUTE, g.get_http_route(request))
        self._server.on_start(attributes, parent_context, request)
        self._client.on_start(attributes, parent_context, request)

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        super().on_end(attributes, context, request, response, error)
        # frameworks often resolve the route only after dispatch
        set_attribute(attributes, http_attributes.HTTP_ROUTE, self._server_getter.get_http_route(request))
        self._network.on_end(attributes, context, request, response, error)


__all__ = [
    "HTTP_REQUEST_BODY_SIZE",
    "HTTP_RESPONSE_BODY_SIZE",
    "OTHER_METHOD",
    "ForwardedClientAddressExtractor",
    "HostHeaderServerAddressExtractor",
    "HttpClientAttributesExtractor",
    "HttpClientAttributesGetter",
    "HttpCommonAttributesGetter",
    "HttpServerAttributesExtractor",
    "HttpServerAttributesGetter",
    "HttpSpanNameExtractor",
    "HttpSpanStatusExtractor",
    "HttpStatusCodeConverter",
    "UrlServerAddressExtractor",
    "parse_forwarded",
    "parse_forwarded_for",
    "request_header_attribute",
    "response_header_attribute",
]
