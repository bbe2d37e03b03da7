"""Per-exchange message counters from /api/exchanges."""

from collections.abc import Iterable

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.metrics import new_counter, sample
from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample
from rabbitmq_exporter.exporters.base import ScrapeContext, filter_excluded

EXCHANGE_LABEL_KEYS = ("vhost", "name")

EXCHANGE_COUNTERS = {
    "message_stats.publish": new_counter(
        "exchange_messages_published_total", "Count of messages published."
    ),
    "message_stats.publish_in": new_counter(
        "exchange_messages_published_in_total",
        "Count of messages published in to an exchange, i.e. not taking "
        "account of routing.",
    ),
    "message_stats.publish_out": new_counter(
        "exchange_messages_published_out_total",
        "Count of messages published out of an exchange, i.e. taking account "
        "of routing.",
    ),
    "message_stats.confirm": new_counter(
        "exchange_messages_confirmed_total", "Count of messages confirmed."
    ),
    "message_stats.deliver": new_counter(
        "exchange_messages_delivered_total",
        "Count of messages delivered in acknowledgement mode to consumers.",
    ),
    "message_stats.deliver_no_ack": new_counter(
        "exchange_messages_delivered_noack_total",
        "Count of messages delivered in no-acknowledgement mode to consumers.",
    ),
    "message_stats.get": new_counter(
        "exchange_messages_get_total",
        "Count of messages delivered in acknowledgement mode in response to basic.get.",
    ),
    "message_stats.get_no_ack": new_counter(
        "exchange_messages_get_noack_total",
        "Count of messages delivered in no-acknowledgement mode in response "
        "to basic.get.",
    ),
    "message_stats.ack": new_counter(
        "exchange_messages_ack_total", "Count of messages acknowledged by consumers."
    ),
    "message_stats.redeliver": new_counter(
        "exchange_messages_redelivered_total",
        "Count of subset of messages in deliver_get which had the redelivered "
        "flag set.",
    ),
    "message_stats.return_unroutable": new_counter(
        "exchange_messages_returned_total",
        "Count of messages returned to publisher as unroutable.",
    ),
}


class ExchangeExporter:
    """Exports message counters of every exchange that reports them."""

    name = "exchange"

    def __init__(self, config: ExporterConfig) -> None:
        self._counters = filter_excluded(EXCHANGE_COUNTERS, config.exclude_metrics)

    def describe(self) -> Iterable[MetricDescriptor]:
        return self._counters.values()

    async def collect(
        self, client: RabbitClient, context: ScrapeContext
    ) -> list[MetricSample]:
        exchanges = await client.get_stats_info("exchanges", EXCHANGE_LABEL_KEYS)
        samples: list[MetricSample] = []
        for exchange in exchanges:
            labels = {
                "cluster": context.cluster,
                "host": context.host,
                "subsystemName": context.subsystem_name,
                "subsystemID": context.subsystem_id,
                "vhost": exchange.labels["vhost"],
                "exchange": exchange.labels["name"],
            }
            samples.extend(
                sample(descriptor, exchange.metrics[key], labels)
                for key, descriptor in self._counters.items()
                if key in exchange.metrics
            )
        return samples
