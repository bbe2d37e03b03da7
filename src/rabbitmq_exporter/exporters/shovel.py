"""Shovel states from /api/shovels."""

from collections.abc import Iterable

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.metrics import new_gauge, sample
from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample
from rabbitmq_exporter.exporters.base import ScrapeContext

SHOVEL_LABEL_KEYS = ("vhost", "name", "type", "node", "state")

SHOVEL_STATE = new_gauge(
    "shovel_state",
    "A metric with a value of constant '1' for each shovel in a certain state",
)


class ShovelExporter:
    """Exports one state sample per shovel."""

    name = "shovel"

    def __init__(self, config: ExporterConfig) -> None:
        pass

    def describe(self) -> Iterable[MetricDescriptor]:
        return (SHOVEL_STATE,)

    async def collect(
        self, client: RabbitClient, context: ScrapeContext
    ) -> list[MetricSample]:
        shovels = await client.get_stats_info("shovels", SHOVEL_LABEL_KEYS)
        return [
            sample(
                SHOVEL_STATE,
                1,
                {
                    "cluster": context.cluster,
                    "host": context.host,
                    "subsystemName": context.subsystem_name,
                    "subsystemID": context.subsystem_id,
                    "vhost": shovel.labels["vhost"],
                    "shovel": shovel.labels["name"],
                    "type": shovel.labels["type"],
                    "self": context.self_label(shovel.labels["node"]),
                    "state": shovel.labels["state"],
                },
            )
            for shovel in shovels
        ]
