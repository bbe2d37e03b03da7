"""Prometheus exporter for the RabbitMQ management API.

Replies are accepted as JSON or BERT and normalized into one model
(MetricMap, StatsInfo) before exporters turn them into metric samples.
"""

from rabbitmq_exporter.adapters.rabbit_client import RabbitAPIError, RabbitClient
from rabbitmq_exporter.collector import Collector
from rabbitmq_exporter.config import ConfigError, ExporterConfig, load_config
from rabbitmq_exporter.core.decoding import BERTReply, JSONReply, make_reply
from rabbitmq_exporter.core.models import MetricMap, MetricSample, StatsInfo
from rabbitmq_exporter.core.ports import RabbitReply
from rabbitmq_exporter.version import __version__

__all__ = [
    "BERTReply",
    "Collector",
    "ConfigError",
    "ExporterConfig",
    "JSONReply",
    "MetricMap",
    "MetricSample",
    "RabbitAPIError",
    "RabbitClient",
    "RabbitReply",
    "StatsInfo",
    "__version__",
    "load_config",
    "make_reply",
]
