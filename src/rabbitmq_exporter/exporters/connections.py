"""Connection gauges from /api/connections, aggregated per label set.

Brokers can hold thousands of connections; samples are summed over all
connections that share vhost, node, peer host and user so the series
count stays bounded.
"""

from collections.abc import Iterable

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.metrics import new_gauge, sample
from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample
from rabbitmq_exporter.exporters.base import ScrapeContext, filter_excluded

CONNECTION_LABEL_KEYS = ("vhost", "node", "peer_host", "user", "state")

CONNECTION_GAUGES = {
    "channels": new_gauge("connection_channels", "number of channels in use"),
    "recv_oct": new_gauge("connection_received_bytes", "received bytes"),
    "recv_cnt": new_gauge("connection_received_packets", "received packets"),
    "send_oct": new_gauge("connection_send_bytes", "send bytes"),
    "send_cnt": new_gauge("connection_send_packets", "send packets"),
    "send_pend": new_gauge("connection_send_pending", "Send queue size"),
}

CONNECTION_STATUS = new_gauge(
    "connection_status",
    "Number of connections in a certain state aggregated per label combination.",
)

_LabelKey = tuple[tuple[str, str], ...]


class ConnectionsExporter:
    """Exports aggregated traffic and state counts of client connections."""

    name = "connections"

    def __init__(self, config: ExporterConfig) -> None:
        self._gauges = filter_excluded(CONNECTION_GAUGES, config.exclude_metrics)

    def describe(self) -> Iterable[MetricDescriptor]:
        yield from self._gauges.values()
        yield CONNECTION_STATUS

    async def collect(
        self, client: RabbitClient, context: ScrapeContext
    ) -> list[MetricSample]:
        connections = await client.get_stats_info("connections", CONNECTION_LABEL_KEYS)

        totals: dict[tuple[MetricDescriptor, _LabelKey], float] = {}
        for conn in connections:
            labels = {
                "cluster": context.cluster,
                "vhost": conn.labels["vhost"],
                "node": conn.labels["node"],
                "peer_host": conn.labels["peer_host"],
                "user": conn.labels["user"],
                "self": context.self_label(conn.labels["node"]),
            }
            for key, descriptor in self._gauges.items():
                if key in conn.metrics:
                    slot = (descriptor, tuple(labels.items()))
                    totals[slot] = totals.get(slot, 0.0) + conn.metrics[key]
            status_labels = {**labels, "state": conn.labels["state"]}
            slot = (CONNECTION_STATUS, tuple(status_labels.items()))
            totals[slot] = totals.get(slot, 0.0) + 1

        return [
            sample(descriptor, value, dict(label_items))
            for (descriptor, label_items), value in totals.items()
        ]
