"""Port interfaces for reply decoders, exporters and log storage.

These protocols define the contracts that adapters must implement.
The collector depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from rabbitmq_exporter.core.models import (
    LogEntry,
    MetricDescriptor,
    MetricMap,
    MetricSample,
    StatsInfo,
)

if TYPE_CHECKING:
    from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
    from rabbitmq_exporter.exporters.base import ScrapeContext


@runtime_checkable
class RabbitReply(Protocol):
    """Port for extracting statistics from one management API reply.

    Implementations hide the transfer format (JSON or BERT). Every operation
    degrades to an empty result on undecodable input instead of raising.
    Examples: JSONReply, BERTReply.
    """

    def make_map(self) -> MetricMap:
        """Flatten the reply into dotted-path numeric values."""
        ...

    def make_stats_info(
        self,
        labels: Sequence[str],
        id_fields: Sequence[str] = ("name", "id"),
    ) -> list[StatsInfo]:
        """Build one StatsInfo per named object of a list reply.

        Args:
            labels: Field names to extract as string labels.
            id_fields: Fields of which at least one must be present for an
                object to be reported.
        """
        ...

    def get_string(self, key: str) -> str | None:
        """Look up a top-level string field, None if absent or not a string."""
        ...


@runtime_checkable
class Exporter(Protocol):
    """Port for one group of broker metrics (queues, nodes, ...).

    Examples: QueueExporter, NodeExporter, ShovelExporter.
    """

    def describe(self) -> Iterable[MetricDescriptor]:
        """Return descriptors of every metric family this exporter emits."""
        ...

    async def collect(
        self, client: "RabbitClient", context: "ScrapeContext"
    ) -> list[MetricSample]:
        """Fetch broker data and convert it to metric samples.

        Raises:
            RabbitAPIError: If the management API could not be queried.
        """
        ...


@runtime_checkable
class LogStoragePort(Protocol):
    """Port for log storage operations.

    Adapters implementing this protocol can store and retrieve log entries.
    Examples: RingBufferLogStorage.
    """

    def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        ...

    def read(self, since: float = 0, level: str | None = None) -> Iterable[LogEntry]:
        """Read log entries since the given timestamp.

        Args:
            since: Unix timestamp. Returns entries with timestamp > since.
                   Default 0 returns all entries.
            level: Optional level name; only entries of that level are returned.

        Returns:
            Iterable of LogEntry objects, ordered by timestamp ascending.
        """
        ...
