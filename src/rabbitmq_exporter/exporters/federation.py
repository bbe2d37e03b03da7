"""Federation link states from /api/federation-links."""

from collections.abc import Iterable

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.metrics import new_gauge, sample
from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample
from rabbitmq_exporter.exporters.base import ScrapeContext

FEDERATION_LABEL_KEYS = ("vhost", "status", "node", "queue", "exchange")
# links carry no "name" field
FEDERATION_ID_FIELDS = ("id",)

FEDERATION_STATE = new_gauge(
    "federation_state",
    "A metric with a value of constant '1' for each federation in a certain state",
)


class FederationExporter:
    """Exports one status sample per federation link."""

    name = "federation"

    def __init__(self, config: ExporterConfig) -> None:
        pass

    def describe(self) -> Iterable[MetricDescriptor]:
        return (FEDERATION_STATE,)

    async def collect(
        self, client: RabbitClient, context: ScrapeContext
    ) -> list[MetricSample]:
        links = await client.get_stats_info(
            "federation-links", FEDERATION_LABEL_KEYS, FEDERATION_ID_FIELDS
        )
        return [
            sample(
                FEDERATION_STATE,
                1,
                {
                    "cluster": context.cluster,
                    "vhost": link.labels["vhost"],
                    "node": link.labels["node"],
                    "queue": link.labels["queue"],
                    "exchange": link.labels["exchange"],
                    "self": context.self_label(link.labels["node"]),
                    "status": link.labels["status"],
                },
            )
            for link in links
        ]
