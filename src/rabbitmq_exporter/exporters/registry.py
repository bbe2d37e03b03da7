"""Named exporter factories selected by RABBIT_EXPORTERS."""

import logging
from collections.abc import Callable

from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.ports import Exporter
from rabbitmq_exporter.exporters.connections import ConnectionsExporter
from rabbitmq_exporter.exporters.exchange import ExchangeExporter
from rabbitmq_exporter.exporters.federation import FederationExporter
from rabbitmq_exporter.exporters.node import NodeExporter
from rabbitmq_exporter.exporters.overview import OverviewExporter
from rabbitmq_exporter.exporters.queue import QueueExporter
from rabbitmq_exporter.exporters.shovel import ShovelExporter

logger = logging.getLogger(__name__)

ExporterFactory = Callable[[ExporterConfig], Exporter]


class ExporterRegistry:
    """Maps exporter names to factories.

    The overview exporter is not registered here: the collector always runs
    it, so "overview" in RABBIT_EXPORTERS is accepted and ignored.
    """

    def __init__(self) -> None:
        self._factories: dict[str, ExporterFactory] = {}

    def register(self, name: str, factory: ExporterFactory) -> None:
        """Make an exporter available under name.

        Raises:
            ValueError: If name is already registered.
        """
        if name in self._factories:
            raise ValueError(f"Exporter {name!r} is already registered")
        self._factories[name] = factory

    def names(self) -> list[str]:
        """Return the registered exporter names, sorted."""
        return sorted(self._factories)

    def create(self, name: str, config: ExporterConfig) -> Exporter:
        """Instantiate one exporter.

        Raises:
            KeyError: If no exporter is registered under name.
        """
        return self._factories[name](config)

    def create_enabled(self, config: ExporterConfig) -> dict[str, Exporter]:
        """Instantiate every exporter listed in config.enabled_exporters.

        Unknown names are logged and skipped.
        """
        exporters: dict[str, Exporter] = {}
        for name in config.enabled_exporters:
            if name == OverviewExporter.name or name in exporters:
                continue
            if name not in self._factories:
                logger.warning("Unknown exporter %r ignored", name)
                continue
            exporters[name] = self.create(name, config)
        return exporters


def default_registry() -> ExporterRegistry:
    """Build a registry holding all built-in exporters."""
    registry = ExporterRegistry()
    registry.register(ConnectionsExporter.name, ConnectionsExporter)
    registry.register(ExchangeExporter.name, ExchangeExporter)
    registry.register(FederationExporter.name, FederationExporter)
    registry.register(NodeExporter.name, NodeExporter)
    registry.register(QueueExporter.name, QueueExporter)
    registry.register(ShovelExporter.name, ShovelExporter)
    return registry
