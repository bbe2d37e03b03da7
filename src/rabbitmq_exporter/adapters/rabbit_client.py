"""HTTP client for the RabbitMQ management API.

Wraps an httpx.AsyncClient configured from ExporterConfig: basic auth,
TLS settings, content negotiation (BERT or JSON) and the no_sort
capability. Replies are handed to make_reply so callers only see the
canonical MetricMap / StatsInfo model.
"""

import logging
import ssl
from collections.abc import Sequence
from pathlib import Path

import httpx

from rabbitmq_exporter.config import CAPABILITY_BERT, CAPABILITY_NO_SORT, ExporterConfig
from rabbitmq_exporter.core.decoding import BERT_CONTENT_TYPE, make_reply
from rabbitmq_exporter.core.models import MetricMap, StatsInfo
from rabbitmq_exporter.core.ports import RabbitReply
from rabbitmq_exporter.core.reply import DEFAULT_ID_FIELDS

logger = logging.getLogger(__name__)

ACCEPT_BERT = f"{BERT_CONTENT_TYPE}, application/json;q=0.1"
ACCEPT_JSON = "application/json"


class RabbitAPIError(Exception):
    """Raised when the management API could not be queried.

    Attributes:
        endpoint: API endpoint that failed (e.g., "queues").
        status_code: HTTP status of the reply, None on transport errors.
    """

    def __init__(self, endpoint: str, status_code: int | None, message: str) -> None:
        super().__init__(f"Error while retrieving {endpoint} from rabbit host: {message}")
        self.endpoint = endpoint
        self.status_code = status_code


def build_ssl_context(config: ExporterConfig) -> ssl.SSLContext:
    """Create the TLS context used for https management URLs.

    The CA file and the client certificate pair are loaded only when the
    files exist; otherwise the default trust store is used.
    """
    ca_file = Path(config.ca_file)
    if ca_file.is_file():
        context = ssl.create_default_context(cafile=str(ca_file))
    else:
        logger.info("Using default certificate pool")
        context = ssl.create_default_context()

    cert_file, key_file = Path(config.cert_file), Path(config.key_file)
    if cert_file.is_file() and key_file.is_file():
        context.load_cert_chain(certfile=str(cert_file), keyfile=str(key_file))

    if config.insecure_skip_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class RabbitClient:
    """Async client for the management API endpoints.

    Example:
        ```python
        async with RabbitClient(config) as client:
            queues = await client.get_stats_info("queues", ["vhost", "name"])
        ```
    """

    def __init__(
        self,
        config: ExporterConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Exporter configuration.
            transport: Optional transport override (e.g., httpx.MockTransport
                in tests).
        """
        self._config = config
        headers = {
            "Accept": ACCEPT_BERT if config.has_capability(CAPABILITY_BERT) else ACCEPT_JSON
        }
        verify: ssl.SSLContext | bool = True
        if config.rabbit_url.lower().startswith("https://"):
            verify = build_ssl_context(config)
        self._client = httpx.AsyncClient(
            base_url=f"{config.rabbit_url}/api/",
            auth=httpx.BasicAuth(config.rabbit_user, config.rabbit_password),
            headers=headers,
            timeout=config.timeout,
            verify=verify,
            transport=transport,
        )

    async def __aenter__(self) -> "RabbitClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def fetch(self, endpoint: str) -> tuple[bytes, str | None]:
        """GET an API endpoint.

        Args:
            endpoint: Path below /api/ (e.g., "overview", "queues").

        Returns:
            Tuple of (body, content type).

        Raises:
            RabbitAPIError: On transport errors or a non-200 status.
        """
        params = {"sort": ""} if self._config.has_capability(CAPABILITY_NO_SORT) else None
        try:
            response = await self._client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            logger.error(
                "Error while retrieving data from rabbit host %s: %s",
                self._config.rabbit_url,
                e,
            )
            raise RabbitAPIError(endpoint, None, str(e)) from e

        if response.status_code != 200:
            logger.error(
                "Error while retrieving data from rabbit host %s: status %d",
                self._config.rabbit_url,
                response.status_code,
            )
            raise RabbitAPIError(
                endpoint, response.status_code, f"unexpected status {response.status_code}"
            )

        content_type = response.headers.get("content-type")
        logger.debug("Metrics loaded from %s (%s)", endpoint, content_type)
        return response.content, content_type

    async def get_reply(self, endpoint: str) -> RabbitReply:
        """Fetch an endpoint and wrap the body in the matching reply decoder."""
        body, content_type = await self.fetch(endpoint)
        return make_reply(body, content_type)

    async def get_stats_info(
        self,
        endpoint: str,
        labels: Sequence[str],
        id_fields: Sequence[str] = DEFAULT_ID_FIELDS,
    ) -> list[StatsInfo]:
        """Fetch a list endpoint and build one StatsInfo per object."""
        reply = await self.get_reply(endpoint)
        return reply.make_stats_info(labels, id_fields)

    async def get_metric_map(self, endpoint: str) -> MetricMap:
        """Fetch an object endpoint and flatten it to a MetricMap."""
        reply = await self.get_reply(endpoint)
        return reply.make_map()


def check_url(url: str, timeout: float = 30.0) -> bool:
    """Check that url answers with HTTP 200.

    Used as a container healthcheck against the exporter's own /health
    endpoint.
    """
    try:
        response = httpx.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        logger.error("Error checking url %s: %s", url, e)
        return False
    if response.status_code != 200:
        logger.error(
            "Error checking url %s: unexpected http code %d", url, response.status_code
        )
        return False
    return True
