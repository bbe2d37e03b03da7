"""Per-node resource gauges from /api/nodes."""

from collections.abc import Iterable

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.metrics import new_gauge, sample
from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample
from rabbitmq_exporter.exporters.base import ScrapeContext, filter_excluded

NODE_LABEL_KEYS = ("name",)

NODE_GAUGES = {
    "uptime": new_gauge("uptime", "Uptime in milliseconds"),
    "running": new_gauge("running", "number of running nodes"),
    "mem_used": new_gauge("node_mem_used", "Memory used in bytes"),
    "mem_limit": new_gauge("node_mem_limit", "Point at which the memory alarm will go off"),
    "mem_alarm": new_gauge("node_mem_alarm", "Whether the memory alarm has gone off"),
    "disk_free": new_gauge("node_disk_free", "Disk free space in bytes."),
    "disk_free_alarm": new_gauge("node_disk_free_alarm", "Whether the disk alarm has gone off."),
    "disk_free_limit": new_gauge(
        "node_disk_free_limit", "Point at which the disk alarm will go off."
    ),
    "fd_used": new_gauge("fd_used", "Used File descriptors"),
    "fd_total": new_gauge("fd_available", "File descriptors available"),
    "sockets_used": new_gauge("sockets_used", "File descriptors used as sockets."),
    "sockets_total": new_gauge(
        "sockets_available", "File descriptors available for use as sockets"
    ),
    "partitions_len": new_gauge(
        "partitions",
        "Current Number of network partitions. 0 is ok. If the cluster is "
        "splitted the value is at least 2",
    ),
}


class NodeExporter:
    """Exports memory, disk and descriptor usage of each cluster node."""

    name = "node"

    def __init__(self, config: ExporterConfig) -> None:
        self._gauges = filter_excluded(NODE_GAUGES, config.exclude_metrics)

    def describe(self) -> Iterable[MetricDescriptor]:
        return self._gauges.values()

    async def collect(
        self, client: RabbitClient, context: ScrapeContext
    ) -> list[MetricSample]:
        nodes = await client.get_stats_info("nodes", NODE_LABEL_KEYS)
        samples: list[MetricSample] = []
        for node in nodes:
            labels = {
                "cluster": context.cluster,
                "node": node.labels["name"],
                "self": context.self_label(node.labels["name"]),
            }
            samples.extend(
                sample(descriptor, node.metrics[key], labels)
                for key, descriptor in self._gauges.items()
                if key in node.metrics
            )
        return samples
