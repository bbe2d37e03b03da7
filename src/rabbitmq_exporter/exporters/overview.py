"""Cluster wide totals from /api/overview.

The overview exporter always runs first in a scrape: besides its gauges it
provides the node and cluster names every other exporter labels with.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.metrics import new_gauge, sample
from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample
from rabbitmq_exporter.exporters.base import ScrapeContext, filter_excluded

logger = logging.getLogger(__name__)

OVERVIEW_GAUGES = {
    "object_totals.channels": new_gauge("channels", "Number of channels."),
    "object_totals.connections": new_gauge("connections", "Number of connections."),
    "object_totals.consumers": new_gauge("consumers", "Number of message consumers."),
    "object_totals.queues": new_gauge("queues", "Number of queues in use."),
    "object_totals.exchanges": new_gauge("exchanges", "Number of exchanges in use."),
    "queue_totals.messages": new_gauge(
        "queue_messages_global",
        "Number ready and unacknowledged messages in cluster.",
    ),
    "queue_totals.messages_ready": new_gauge(
        "queue_messages_ready_global",
        "Number of messages ready to be delivered to clients.",
    ),
    "queue_totals.messages_unacknowledged": new_gauge(
        "queue_messages_unacknowledged_global",
        "Number of messages delivered to clients but not yet acknowledged.",
    ),
}


def _as_count(value: float) -> int:
    return int(value) if math.isfinite(value) else 0


@dataclass(frozen=True)
class NodeInfo:
    """Identity of the broker node the exporter is connected to."""

    node: str = ""
    cluster_name: str = ""
    rabbitmq_version: str = ""
    erlang_version: str = ""
    total_queues: int = 0


class OverviewExporter:
    """Exports the overview gauges and remembers the node identity."""

    name = "overview"

    def __init__(self, config: ExporterConfig) -> None:
        self._gauges = filter_excluded(OVERVIEW_GAUGES, config.exclude_metrics)
        self.node_info = NodeInfo()

    def describe(self) -> Iterable[MetricDescriptor]:
        return self._gauges.values()

    async def collect(
        self, client: RabbitClient, context: ScrapeContext
    ) -> list[MetricSample]:
        reply = await client.get_reply("overview")
        data = reply.make_map()
        logger.debug("Overview data: %s", data)

        self.node_info = NodeInfo(
            node=reply.get_string("node") or "",
            cluster_name=reply.get_string("cluster_name") or "",
            rabbitmq_version=reply.get_string("rabbitmq_version") or "",
            erlang_version=reply.get_string("erlang_version") or "",
            total_queues=_as_count(data.get("object_totals.queues", 0.0)),
        )

        return [
            sample(descriptor, data[key])
            for key, descriptor in self._gauges.items()
            if key in data
        ]
