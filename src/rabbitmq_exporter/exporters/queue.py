"""Per-queue metrics from /api/queues."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.metrics import new_counter, new_gauge, sample
from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample, StatsInfo
from rabbitmq_exporter.exporters.base import ScrapeContext, filter_excluded

logger = logging.getLogger(__name__)

QUEUE_LABEL_KEYS = ("vhost", "name", "durable", "policy", "state", "node", "idle_since")

IDLE_SINCE_FORMAT = "%Y-%m-%d %H:%M:%S"

QUEUE_GAUGES = {
    "messages_ready": new_gauge(
        "queue_messages_ready", "Number of messages ready to be delivered to clients."
    ),
    "messages_unacknowledged": new_gauge(
        "queue_messages_unacknowledged",
        "Number of messages delivered to clients but not yet acknowledged.",
    ),
    "messages": new_gauge(
        "queue_messages", "Sum of ready and unacknowledged messages (queue depth)."
    ),
    "messages_ready_ram": new_gauge(
        "queue_messages_ready_ram",
        "Number of messages from messages_ready which are resident in ram.",
    ),
    "messages_unacknowledged_ram": new_gauge(
        "queue_messages_unacknowledged_ram",
        "Number of messages from messages_unacknowledged which are resident in ram.",
    ),
    "messages_ram": new_gauge(
        "queue_messages_ram", "Total number of messages which are resident in ram."
    ),
    "messages_persistent": new_gauge(
        "queue_messages_persistent",
        "Total number of persistent messages in the queue "
        "(will always be 0 for transient queues).",
    ),
    "message_bytes": new_gauge(
        "queue_message_bytes",
        "Sum of the size of all message bodies in the queue. This does not "
        "include the message properties (including headers) or any overhead.",
    ),
    "message_bytes_ready": new_gauge(
        "queue_message_bytes_ready",
        "Like message_bytes but counting only those messages ready to be "
        "delivered to clients.",
    ),
    "message_bytes_unacknowledged": new_gauge(
        "queue_message_bytes_unacknowledged",
        "Like message_bytes but counting only those messages delivered to "
        "clients but not yet acknowledged.",
    ),
    "message_bytes_ram": new_gauge(
        "queue_message_bytes_ram",
        "Like message_bytes but counting only those messages which are in RAM.",
    ),
    "message_bytes_persistent": new_gauge(
        "queue_message_bytes_persistent",
        "Like message_bytes but counting only those messages which are persistent.",
    ),
    "consumers": new_gauge("queue_consumers", "Number of consumers."),
    "consumer_utilisation": new_gauge(
        "queue_consumer_utilisation",
        "Fraction of the time (between 0.0 and 1.0) that the queue is able to "
        "immediately deliver messages to consumers.",
    ),
    "memory": new_gauge(
        "queue_memory",
        "Bytes of memory consumed by the Erlang process associated with the "
        "queue, including stack, heap and internal structures.",
    ),
    "head_message_timestamp": new_gauge(
        "queue_head_message_timestamp",
        "The timestamp property of the first message in the queue, if present.",
    ),
    "arguments.x-max-length-bytes": new_gauge(
        "queue_max_length_bytes",
        "Total body size for ready messages a queue can contain before it "
        "starts to drop them from its head.",
    ),
    "arguments.x-max-length": new_gauge(
        "queue_max_length",
        "How many (ready) messages a queue can contain before it starts to "
        "drop them from its head.",
    ),
    "garbage_collection.min_heap_size": new_gauge(
        "queue_gc_min_heap", "Minimum heap size in words"
    ),
    "garbage_collection.min_bin_vheap_size": new_gauge(
        "queue_gc_min_vheap", "Minimum binary virtual heap size in words"
    ),
    "garbage_collection.fullsweep_after": new_gauge(
        "queue_gc_collections_before_fullsweep",
        "Maximum generational collections before fullsweep",
    ),
    "slave_nodes_len": new_gauge(
        "queue_slaves_nodes_len", "Number of slave nodes attached to the queue"
    ),
    "synchronised_slave_nodes_len": new_gauge(
        "queue_synchronised_slave_nodes_len",
        "Number of slave nodes in sync to the queue",
    ),
}

QUEUE_COUNTERS = {
    "disk_reads": new_counter(
        "queue_disk_reads_total",
        "Total number of times messages have been read from disk by this "
        "queue since it started.",
    ),
    "disk_writes": new_counter(
        "queue_disk_writes_total",
        "Total number of times messages have been written to disk by this "
        "queue since it started.",
    ),
    "message_stats.publish": new_counter(
        "queue_messages_published_total", "Count of messages published."
    ),
    "message_stats.confirm": new_counter(
        "queue_messages_confirmed_total", "Count of messages confirmed."
    ),
    "message_stats.deliver": new_counter(
        "queue_messages_delivered_total",
        "Count of messages delivered in acknowledgement mode to consumers.",
    ),
    "message_stats.deliver_no_ack": new_counter(
        "queue_messages_delivered_noack_total",
        "Count of messages delivered in no-acknowledgement mode to consumers.",
    ),
    "message_stats.get": new_counter(
        "queue_messages_get_total",
        "Count of messages delivered in acknowledgement mode in response to basic.get.",
    ),
    "message_stats.get_no_ack": new_counter(
        "queue_messages_get_noack_total",
        "Count of messages delivered in no-acknowledgement mode in response "
        "to basic.get.",
    ),
    "message_stats.redeliver": new_counter(
        "queue_messages_redelivered_total",
        "Count of subset of messages in deliver_get which had the redelivered "
        "flag set.",
    ),
    "message_stats.return": new_counter(
        "queue_messages_returned_total",
        "Count of messages returned to publisher as unroutable.",
    ),
    "message_stats.ack": new_counter(
        "queue_messages_ack_total", "Count of messages acknowledged by consumers."
    ),
    "reductions": new_counter(
        "queue_reductions_total",
        "Count of reductions which take place on this process.",
    ),
    "garbage_collection.minor_gcs": new_counter(
        "queue_gc_minor_collections_total", "Number of minor GCs"
    ),
}

QUEUE_STATE = new_gauge(
    "queue_state",
    "A metric with a value of constant '1' if the queue is in a certain state",
)
QUEUE_IDLE_SINCE = new_gauge(
    "queue_idle_since_seconds",
    "starttime where the queue switched to idle state; "
    "in seconds since epoch (1970).",
)


def parse_idle_since(value: str) -> float:
    """Convert the broker's idle_since string to seconds since the epoch.

    The management API reports UTC times without a zone, e.g.
    "2023-01-31 12:34:56".

    Raises:
        ValueError: If value is not in that format.
    """
    parsed = datetime.strptime(value, IDLE_SINCE_FORMAT)
    return parsed.replace(tzinfo=timezone.utc).timestamp()


class QueueExporter:
    """Exports queue depth, rates and state for every matching queue.

    Queues are filtered by the INCLUDE/SKIP vhost and queue regular
    expressions. With MAX_QUEUES set, nothing is exported while the cluster
    holds more queues than that.
    """

    name = "queue"

    def __init__(self, config: ExporterConfig) -> None:
        self._config = config
        self._gauges = filter_excluded(QUEUE_GAUGES, config.exclude_metrics)
        self._counters = filter_excluded(QUEUE_COUNTERS, config.exclude_metrics)

    def describe(self) -> Iterable[MetricDescriptor]:
        yield from self._gauges.values()
        yield QUEUE_STATE
        yield QUEUE_IDLE_SINCE
        yield from self._counters.values()

    def _selected(self, queue: StatsInfo) -> bool:
        config = self._config
        vhost = queue.labels["vhost"]
        name = queue.labels["name"]
        return (
            config.include_vhost.search(vhost) is not None
            and config.skip_vhost.search(vhost) is None
            and config.include_queues.search(name) is not None
            and config.skip_queues.search(name) is None
        )

    async def collect(
        self, client: RabbitClient, context: ScrapeContext
    ) -> list[MetricSample]:
        max_queues = self._config.max_queues
        if max_queues > 0 and context.total_queues > max_queues:
            logger.debug(
                "MaxQueues exceeded: %d queues, limit %d",
                context.total_queues,
                max_queues,
            )
            return []

        queues = await client.get_stats_info("queues", QUEUE_LABEL_KEYS)
        samples: list[MetricSample] = []
        for queue in queues:
            if not self._selected(queue):
                continue
            samples.extend(self._queue_samples(queue, context))
        return samples

    def _queue_samples(
        self, queue: StatsInfo, context: ScrapeContext
    ) -> list[MetricSample]:
        labels = {
            "cluster": context.cluster,
            "vhost": queue.labels["vhost"],
            "queue": queue.labels["name"],
            "durable": queue.labels["durable"],
            "policy": queue.labels["policy"],
            "self": context.self_label(queue.labels["node"]),
        }
        samples = [
            sample(descriptor, queue.metrics[key], labels)
            for key, descriptor in self._gauges.items()
            if key in queue.metrics
        ]

        state = queue.labels["state"]
        idle_since = queue.labels["idle_since"]
        if idle_since:
            try:
                seconds = parse_idle_since(idle_since)
            except ValueError as e:
                logger.warning("error parsing idle since time %r: %s", idle_since, e)
            else:
                # only a running queue is reported as idle; flow etc. are kept
                if state == "running":
                    state = "idle"
                samples.append(sample(QUEUE_IDLE_SINCE, seconds, labels))
                samples.append(sample(QUEUE_STATE, 1, {**labels, "state": state}))
        else:
            samples.append(sample(QUEUE_STATE, 1, {**labels, "state": state}))

        samples.extend(
            sample(descriptor, queue.metrics.get(key, 0.0), labels)
            for key, descriptor in self._counters.items()
        )
        return samples
