"""Exporters turning management API statistics into metric samples."""

from rabbitmq_exporter.exporters.base import ScrapeContext
from rabbitmq_exporter.exporters.connections import ConnectionsExporter
from rabbitmq_exporter.exporters.exchange import ExchangeExporter
from rabbitmq_exporter.exporters.federation import FederationExporter
from rabbitmq_exporter.exporters.node import NodeExporter
from rabbitmq_exporter.exporters.overview import NodeInfo, OverviewExporter
from rabbitmq_exporter.exporters.queue import QueueExporter
from rabbitmq_exporter.exporters.registry import ExporterRegistry, default_registry
from rabbitmq_exporter.exporters.shovel import ShovelExporter

__all__ = [
    "ConnectionsExporter",
    "ExchangeExporter",
    "ExporterRegistry",
    "FederationExporter",
    "NodeExporter",
    "NodeInfo",
    "OverviewExporter",
    "QueueExporter",
    "ScrapeContext",
    "ShovelExporter",
    "default_registry",
]
