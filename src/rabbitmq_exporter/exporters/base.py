"""Shared pieces of the per-object exporters."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from rabbitmq_exporter.core.models import MetricDescriptor


@dataclass(frozen=True)
class ScrapeContext:
    """Broker identity shared with every exporter during one scrape.

    Values come from the last successful overview and may be empty before
    the first one.

    Attributes:
        cluster: Cluster name reported by the overview endpoint.
        node: Name of the node the exporter is connected to.
        total_queues: Number of queues in the cluster (object_totals.queues).
        host: Host and port of the management URL.
        subsystem_name: Configured subsystem name label.
        subsystem_id: Configured subsystem id label.
    """

    cluster: str = ""
    node: str = ""
    total_queues: int = 0
    host: str = ""
    subsystem_name: str = ""
    subsystem_id: str = ""

    def self_label(self, node: str) -> str:
        """Return "1" if node is the node the exporter talks to, else "0"."""
        return "1" if node == self.node else "0"


def filter_excluded(
    metrics: Mapping[str, MetricDescriptor], exclude: Iterable[str]
) -> dict[str, MetricDescriptor]:
    """Drop the metric keys listed in EXCLUDE_METRICS.

    Args:
        metrics: Source field path → descriptor.
        exclude: Source field paths to remove (e.g., "memory").

    Returns:
        A new mapping; the input is left untouched.
    """
    excluded = set(exclude)
    return {key: desc for key, desc in metrics.items() if key not in excluded}
