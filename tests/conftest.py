"""Shared test fixtures for all test modules."""

import json
from collections.abc import Callable
from typing import Any

import erlang
import httpx
import pytest

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.config import ExporterConfig


def to_term(obj: Any, style: str = "proplist") -> Any:
    """Convert a JSON document to the Erlang term the broker would send.

    Args:
        obj: Tree as returned by json.loads.
        style: Encoding of JSON objects: "proplist" ([{key, value}]),
            "struct" ({struct, [{key, value}]}) or "map" (#{key => value}).
    """
    if isinstance(obj, dict):
        if style == "map":
            return {
                erlang.OtpErlangAtom(key.encode()): to_term(value, style)
                for key, value in obj.items()
            }
        pairs = [
            (erlang.OtpErlangAtom(key.encode()), to_term(value, style))
            for key, value in obj.items()
        ]
        if style == "struct":
            return (erlang.OtpErlangAtom(b"struct"), pairs)
        return pairs
    if isinstance(obj, list):
        return [to_term(item, style) for item in obj]
    if isinstance(obj, str):
        return erlang.OtpErlangBinary(obj.encode())
    return obj


@pytest.fixture
def bert_body() -> Callable[..., bytes]:
    """Factory encoding a JSON-like tree as a BERT reply body.

    Usage:
        body = bert_body({"node": "rabbit@a", "queues": 3}, style="struct")
    """

    def _encode(obj: Any, style: str = "proplist") -> bytes:
        return erlang.term_to_binary(to_term(obj, style))

    return _encode


@pytest.fixture
def json_body() -> Callable[[Any], bytes]:
    """Factory encoding a tree as a JSON reply body."""

    def _encode(obj: Any) -> bytes:
        return json.dumps(obj).encode()

    return _encode


@pytest.fixture
def config(monkeypatch: pytest.MonkeyPatch) -> ExporterConfig:
    """Default configuration, isolated from the caller's environment."""
    for name in ("RABBIT_URL", "RABBIT_CAPABILITIES", "RABBIT_EXPORTERS", "MAX_QUEUES"):
        monkeypatch.delenv(name, raising=False)
    return ExporterConfig(
        rabbit_url="http://rabbit:15672",
        rabbit_user="guest",
        rabbit_password="guest",
        rabbit_capabilities="bert,no_sort",
        enabled_exporters="exchange,node,overview,queue",
    )


@pytest.fixture
def broker_routes() -> dict[str, Any]:
    """Replies of a small single node broker, keyed by API endpoint."""
    return {
        "overview": {
            "node": "rabbit@host1",
            "cluster_name": "rabbit@host1.example",
            "rabbitmq_version": "3.12.4",
            "erlang_version": "26.0.2",
            "object_totals": {
                "channels": 2,
                "connections": 1,
                "consumers": 1,
                "exchanges": 8,
                "queues": 2,
            },
            "queue_totals": {
                "messages": 7,
                "messages_ready": 5,
                "messages_unacknowledged": 2,
            },
        },
        "queues": [
            {
                "name": "orders",
                "vhost": "/",
                "durable": True,
                "policy": "ha-all",
                "state": "running",
                "node": "rabbit@host1",
                "messages": 7,
                "messages_ready": 5,
                "consumers": 1,
                "slave_nodes": ["rabbit@host2"],
                "message_stats": {"publish": 100, "deliver": 93},
            },
            {
                "name": "audit",
                "vhost": "internal",
                "durable": False,
                "state": "running",
                "node": "rabbit@host2",
                "idle_since": "2023-01-31 12:00:00",
                "messages": 0,
            },
        ],
        "exchanges": [
            {"name": "", "vhost": "/", "type": "direct"},
            {
                "name": "events",
                "vhost": "/",
                "type": "topic",
                "message_stats": {"publish_in": 40, "publish_out": 38},
            },
        ],
        "nodes": [
            {
                "name": "rabbit@host1",
                "running": True,
                "mem_used": 123456,
                "fd_used": 40,
                "fd_total": 1024,
                "partitions": [],
            }
        ],
        "connections": [
            {
                "name": "10.0.0.5:5000 -> 10.0.0.1:5672",
                "vhost": "/",
                "node": "rabbit@host1",
                "peer_host": "10.0.0.5",
                "user": "app",
                "state": "running",
                "channels": 2,
                "recv_oct": 100,
            },
            {
                "name": "10.0.0.5:5001 -> 10.0.0.1:5672",
                "vhost": "/",
                "node": "rabbit@host1",
                "peer_host": "10.0.0.5",
                "user": "app",
                "state": "running",
                "channels": 3,
                "recv_oct": 50,
            },
        ],
        "shovels": [
            {
                "name": "move-orders",
                "vhost": "/",
                "type": "dynamic",
                "node": "rabbit@host1",
                "state": "running",
            }
        ],
        "federation-links": [
            {
                "id": "fed-1",
                "vhost": "/",
                "status": "running",
                "node": "rabbit@host1",
                "exchange": "events",
                "upstream": "dc2",
            }
        ],
    }


@pytest.fixture
def broker_transport(
    broker_routes: dict[str, Any],
) -> Callable[..., httpx.MockTransport]:
    """Factory for an httpx.MockTransport serving broker_routes.

    Args of the factory:
        fmt: "json" or "bert", the reply encoding.
        failing: Endpoints answered with HTTP 500.
        requests: Optional list collecting every request made.
    """

    def _transport(
        fmt: str = "json",
        failing: tuple[str, ...] = (),
        requests: list[httpx.Request] | None = None,
    ) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            if requests is not None:
                requests.append(request)
            endpoint = request.url.path.removeprefix("/api/")
            if endpoint in failing:
                return httpx.Response(500, text="boom")
            if endpoint not in broker_routes:
                return httpx.Response(404, text="Not Found")
            data = broker_routes[endpoint]
            if fmt == "bert":
                return httpx.Response(
                    200,
                    content=erlang.term_to_binary(to_term(data)),
                    headers={"content-type": "application/bert"},
                )
            return httpx.Response(200, json=data)

        return httpx.MockTransport(handler)

    return _transport


@pytest.fixture
def rabbit_client(
    config: ExporterConfig, broker_transport: Callable[..., httpx.MockTransport]
) -> Callable[..., RabbitClient]:
    """Factory for a RabbitClient talking to the mock broker."""

    def _client(cfg: ExporterConfig | None = None, **transport_args: Any) -> RabbitClient:
        return RabbitClient(cfg or config, transport=broker_transport(**transport_args))

    return _client


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
