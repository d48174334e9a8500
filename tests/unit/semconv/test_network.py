"""Unit tests for server/client/network attribute extractors and code attributes."""

from __future__ import annotations

from opentelemetry.context import Context

from mp_instrumentation.instrumenter import AttributesBuilder
from mp_instrumentation.instrumenter.semconv import (
    AddressAndPort,
    ClientAttributesExtractor,
    ClientAttributesGetter,
    CodeAttributesExtractor,
    CodeAttributesGetter,
    CodeSpanNameExtractor,
    NetworkAttributesExtractor,
    NetworkAttributesGetter,
    ServerAttributesExtractor,
    ServerAttributesGetter,
)


class FixedServerGetter(ServerAttributesGetter[dict]):
    def get_server_address(self, request: dict) -> str | None:
        return request.get("host")

    def get_server_port(self, request: dict) -> int | None:
        return request.get("port")


class FixedNetworkGetter(NetworkAttributesGetter[dict, dict]):
    def get_network_type(self, request, response) -> str | None:
        return "IPv4"

    def get_network_transport(self, request, response) -> str | None:
        return "TCP"

    def get_network_protocol_name(self, request, response) -> str | None:
        return "AMQP"

    def get_network_protocol_version(self, request, response) -> str | None:
        return "0.9.1"

    def get_network_peer_address(self, request, response) -> str | None:
        return "10.1.2.3"

    def get_network_peer_port(self, request, response) -> int | None:
        return 5672

    def get_network_local_port(self, request, response) -> int | None:
        return 0


def _on_start(extractor, request) -> dict:
    attributes = AttributesBuilder()
    extractor.on_start(attributes, Context(), request)
    return attributes.as_dict()


class TestServerAttributesExtractor:
    def test_getter_values(self) -> None:
        attrs = _on_start(ServerAttributesExtractor(FixedServerGetter()), {"host": "db", "port": 5432})
        assert attrs == {"server.address": "db", "server.port": 5432}

    def test_non_positive_port_dropped(self) -> None:
        attrs = _on_start(ServerAttributesExtractor(FixedServerGetter()), {"host": "db", "port": -1})
        assert attrs == {"server.address": "db"}

    def test_fallback_used_only_when_getter_is_empty(self) -> None:
        def fallback(sink: AddressAndPort, request: dict) -> None:
            sink.set_address("fallback")
            sink.set_port(81)

        extractor = ServerAttributesExtractor(FixedServerGetter(), fallback)
        assert _on_start(extractor, {}) == {"server.address": "fallback", "server.port": 81}
        assert _on_start(extractor, {"host": "db"}) == {"server.address": "db"}


class TestClientAttributesExtractor:
    def test_defaults_write_nothing(self) -> None:
        assert _on_start(ClientAttributesExtractor(ClientAttributesGetter()), {}) == {}


class TestNetworkAttributesExtractor:
    def test_written_on_end_and_lowercased(self) -> None:
        extractor = NetworkAttributesExtractor(FixedNetworkGetter())
        attributes = AttributesBuilder()
        extractor.on_start(attributes, Context(), {})
        assert len(attributes) == 0

        extractor.on_end(attributes, Context(), {}, {}, None)
        assert attributes.as_dict() == {
            "network.type": "ipv4",
            "network.transport": "tcp",
            "network.protocol.name": "amqp",
            "network.protocol.version": "0.9.1",
            "network.peer.address": "10.1.2.3",
            "network.peer.port": 5672,
        }


class MethodGetter(CodeAttributesGetter[tuple]):
    def get_code_namespace(self, request: tuple) -> str | None:
        return request[0]

    def get_method_name(self, request: tuple) -> str | None:
        return request[1]


class TestCodeAttributes:
    def test_code_attributes(self) -> None:
        attrs = _on_start(CodeAttributesExtractor(MethodGetter()), ("shop.services.OrderService", "place"))
        assert attrs == {"code.namespace": "shop.services.OrderService", "code.function": "place"}

    def test_code_span_name(self) -> None:
        extractor = CodeSpanNameExtractor(MethodGetter())
        assert extractor.extract(("shop.services.OrderService", "place")) == "OrderService.place"
        assert extractor.extract((None, "main")) == "main"
