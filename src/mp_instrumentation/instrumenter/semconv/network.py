"""Semconv – ``server.*``, ``client.*`` and ``network.*`` attributes."""
from __future__ import annotations

import dataclasses
from typing import Any, Callable, Generic, TypeVar

from opentelemetry.context import Context
from opentelemetry.semconv.attributes import client_attributes, network_attributes, server_attributes

from mp_instrumentation.instrumenter.attributes import AttributesBuilder, set_attribute

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")


@dataclasses.dataclass
class AddressAndPort:
    """Mutable sink filled by getters and fallback extractors."""

    address: str | None = None
    port: int | None = None

    def set_address(self, address: str | None) -> None:
        self.address = address

    def set_port(self, port: int | None) -> None:
        self.port = port


FallbackAddressPortExtractor = Callable[[AddressAndPort, Any], None]


def _no_fallback(sink: AddressAndPort, request: Any) -> None:  # noqa: ARG001
    return None


# ---------------------------------------------------------------------------
# Getters
# ---------------------------------------------------------------------------


class ServerAttributesGetter(Generic[REQUEST]):
    """Logical server address of the operation; every method is optional."""

    def get_server_address(self, request: REQUEST) -> str | None:
        return None

    def get_server_port(self, request: REQUEST) -> int | None:
        return None


class ClientAttributesGetter(Generic[REQUEST]):
    """Logical client address as seen by a server; every method is optional."""

    def get_client_address(self, request: REQUEST) -> str | None:
        return None

    def get_client_port(self, request: REQUEST) -> int | None:
        return None


class NetworkAttributesGetter(Generic[REQUEST, RESPONSE]):
    """Transport-level details; every method is optional."""

    def get_network_type(self, request: REQUEST, response: RESPONSE | None) -> str | None:
        return None

    def get_network_transport(self, request: REQUEST, response: RESPONSE | None) -> str | None:
        return None

    def get_network_protocol_name(self, request: REQUEST, response: RESPONSE | None) -> str | None:
        return None

    def get_network_protocol_version(self, request: REQUEST, response: RESPONSE | None) -> str | None:
        return None

    def get_network_local_address(self, request: REQUEST, response: RESPONSE | None) -> str | None:
        return None

    def get_network_local_port(self, request: REQUEST, response: RESPONSE | None) -> int | None:
        return None

    def get_network_peer_address(self, request: REQUEST, response: RESPONSE | None) -> str | None:
        return None

    def get_network_peer_port(self, request: REQUEST, response: RESPONSE | None) -> int | None:
        return None


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------


def _positive(port: int | None) -> int | None:
    return port if port is not None and port > 0 else None


class ServerAttributesExtractor(Generic[REQUEST, RESPONSE]):
    """Writes ``server.address`` / ``server.port`` on start."""

    def __init__(
        self,
        getter: ServerAttributesGetter[REQUEST],
        fallback: FallbackAddressPortExtractor = _no_fallback,
    ) -> None:
        self._getter = getter
        self._fallback = fallback

    def address_and_port(self, request: REQUEST) -> AddressAndPort:
        sink = AddressAndPort(self._getter.get_server_address(request), self._getter.get_server_port(request))
        if sink.address is None and sink.port is None:
            self._fallback(sink, request)
        return sink

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:  # noqa: ARG002
        server = self.address_and_port(request)
        set_attribute(attributes, server_attributes.SERVER_ADDRESS, server.address)
        set_attribute(attributes, server_attributes.SERVER_PORT, _positive(server.port))

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        pass


class ClientAttributesExtractor(Generic[REQUEST, RESPONSE]):
    """Writes ``client.address`` / ``client.port`` on start."""

    def __init__(
        self,
        getter: ClientAttributesGetter[REQUEST],
        fallback: FallbackAddressPortExtractor = _no_fallback,
    ) -> None:
        self._getter = getter
        self._fallback = fallback

    def address_and_port(self, request: REQUEST) -> AddressAndPort:
        sink = AddressAndPort(self._getter.get_client_address(request), self._getter.get_client_port(request))
        if sink.address is None and sink.port is None:
            self._fallback(sink, request)
        return sink

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:  # noqa: ARG002
        client = self.address_and_port(request)
        set_attribute(attributes, client_attributes.CLIENT_ADDRESS, client.address)
        set_attribute(attributes, client_attributes.CLIENT_PORT, _positive(client.port))

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        pass


class NetworkAttributesExtractor(Generic[REQUEST, RESPONSE]):
    """Writes ``network.*`` attributes on end, once the connection is known."""

    def __init__(self, getter: NetworkAttributesGetter[REQUEST, RESPONSE]) -> None:
        self._getter = getter

    def on_start(self, attributes: AttributesBuilder, parent_context: Context, request: REQUEST) -> None:
        pass

    def on_end(
        self,
        attributes: AttributesBuilder,
        context: Context,  # noqa: ARG002
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,  # noqa: ARG002
    ) -> None:
        g = self._getter
        protocol_name = g.get_network_protocol_name(request, response)
        set_attribute(attributes, network_attributes.NETWORK_TYPE, _lower(g.get_network_type(request, response)))
        set_attribute(
            attributes, network_attributes.NETWORK_TRANSPORT, _lower(g.get_network_transport(request, response))
        )
        set_attribute(attributes, network_attributes.NETWORK_PROTOCOL_NAME, _lower(protocol_name))
        set_attribute(
            attributes, network_attributes.NETWORK_PROTOCOL_VERSION, g.get_network_protocol_version(request, response)
        )
        set_attribute(
            attributes, network_attributes.NETWORK_LOCAL_ADDRESS, g.get_network_local_address(request, response)
        )
        set_attribute(
            attributes, network_attributes.NETWORK_LOCAL_PORT, _positive(g.get_network_local_port(request, response))
        )
        set_attribute(
            attributes, network_attributes.NETWORK_PEER_ADDRESS, g.get_network_peer_address(request, response)
        )
        set_attribute(
            attributes, network_attributes.NETWORK_PEER_PORT, _positive(g.get_network_peer_port(request, response))
        )


def _lower(value: str | None) -> str | None:
    return value.lower() if value is not None else None


__all__ = [
    "AddressAndPort",
    "ClientAttributesExtractor",
    "ClientAttributesGetter",
    "FallbackAddressPortExtractor",
    "NetworkAttributesExtractor",
    "NetworkAttributesGetter",
    "ServerAttributesExtractor",
    "ServerAttributesGetter",
]
