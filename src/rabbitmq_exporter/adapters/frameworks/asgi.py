"""ASGI application serving the exporter endpoints.

A framework-free ASGI app that can run under any ASGI server (uvicorn,
hypercorn, daphne):

- ``/`` landing page
- ``/metrics`` scrape the broker, Prometheus text format
- ``/health`` 200 if the last scrape succeeded, 504 otherwise
- ``/logs`` recent exporter logs as NDJSON, filtered by ``since``/``level``
"""

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from rabbitmq_exporter.adapters.frameworks.query_params import (
    _parse_level_param,
    _parse_since_param,
)
from rabbitmq_exporter.collector import Collector
from rabbitmq_exporter.core.encoding.ndjson import encode_logs
from rabbitmq_exporter.core.encoding.prometheus import CONTENT_TYPE, encode_metrics
from rabbitmq_exporter.core.ports import LogStoragePort

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

INDEX_PAGE = """<html>
<head><title>RabbitMQ Exporter</title></head>
<body>
<h1>RabbitMQ Exporter</h1>
<p><a href='/metrics'>Metrics</a></p>
</body>
</html>
"""


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Returns an empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
    """
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _handle_endpoint(
    send: Send,
    endpoint_func: Callable[[], Coroutine[Any, Any, str]],
    content_type: str,
    log_message: str,
) -> None:
    """Execute an endpoint function with error handling and send response.

    Args:
        send: ASGI send callable for writing response.
        endpoint_func: Async function that returns response body.
        content_type: Content-Type header for success response.
        log_message: Message to log on error.
    """
    try:
        body = await endpoint_func()
        await _send_response(send, 200, content_type, body)
    except Exception:
        logger.exception(log_message)
        error_body = json.dumps({"error": "Internal Server Error"})
        await _send_response(send, 500, "application/json", error_body)


def create_asgi_app(
    collector: Collector,
    log_storage: LogStoragePort | None = None,
) -> ASGIApp:
    """Create the exporter's ASGI app.

    Args:
        collector: Collector run on every /metrics request.
        log_storage: Storage served at /logs. Without one, /logs is empty.

    Returns:
        ASGI application callable.
    """

    async def render_metrics() -> str:
        samples = await collector.scrape()
        return encode_metrics(samples, collector.describe())

    async def lifespan(receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await collector.aclose()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        path = scope["path"]

        if path == "/metrics":
            await _handle_endpoint(
                send, render_metrics, CONTENT_TYPE, "Error scraping metrics endpoint"
            )
        elif path == "/health":
            if collector.last_scrape_ok:
                await _send_response(send, 200, "text/plain", "OK")
            else:
                await _send_response(send, 504, "text/plain", "Last scrape failed")
        elif path == "/logs":
            params = _parse_query_params(scope)
            since = _parse_since_param(params)
            level = _parse_level_param(params)

            async def render_logs() -> str:
                if log_storage is None:
                    return ""
                return encode_logs(log_storage.read(since=since, level=level))

            await _handle_endpoint(
                send,
                render_logs,
                "application/x-ndjson",
                "Error encoding logs endpoint",
            )
        elif path == "/":
            await _send_response(send, 200, "text/html; charset=utf-8", INDEX_PAGE)
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
