"""Scrape orchestration.

One scrape runs the overview exporter first (it supplies node and cluster
names), then every enabled exporter concurrently, and adds the exporter's
own health metrics: up, module_up, module_scrape_duration_seconds and the
build info.
"""

import asyncio
import logging
import time
from collections.abc import Sequence

from rabbitmq_exporter.adapters.rabbit_client import RabbitAPIError, RabbitClient
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.metrics import new_gauge, sample
from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample
from rabbitmq_exporter.core.ports import Exporter
from rabbitmq_exporter.exporters.base import ScrapeContext
from rabbitmq_exporter.exporters.overview import OverviewExporter
from rabbitmq_exporter.exporters.registry import ExporterRegistry, default_registry
from rabbitmq_exporter.version import BuildInfo

logger = logging.getLogger(__name__)

UP = new_gauge("up", "Was the last scrape of rabbitmq successful.")
MODULE_UP = new_gauge("module_up", "Was the last scrape of rabbitmq successful per module.")
MODULE_SCRAPE_DURATION = new_gauge(
    "module_scrape_duration_seconds", "Duration of the last scrape in seconds"
)
BUILD_INFO = MetricDescriptor(
    name="rabbitmq_exporter_build_info",
    help="A metric with a constant '1' value labeled by version, revision, "
    "branch and build date on which the rabbitmq_exporter was built.",
)


class Collector:
    """Runs the enabled exporters against one broker.

    Overlapping scrapes are serialized by a lock.

    Example:
        ```python
        collector = Collector(config, RabbitClient(config))
        samples = await collector.scrape()
        ```
    """

    def __init__(
        self,
        config: ExporterConfig,
        client: RabbitClient,
        registry: ExporterRegistry | None = None,
        build_info: BuildInfo | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._overview = OverviewExporter(config)
        self._exporters = (registry or default_registry()).create_enabled(config)
        self._build_info = build_info or BuildInfo.from_env()
        self._lock = asyncio.Lock()
        # reported healthy until the first scrape says otherwise
        self._last_scrape_ok = True

    @property
    def last_scrape_ok(self) -> bool:
        """True if every exporter succeeded in the last scrape."""
        return self._last_scrape_ok

    @property
    def exporter_names(self) -> list[str]:
        """Names of the enabled exporters besides overview."""
        return list(self._exporters)

    async def aclose(self) -> None:
        """Close the management API client."""
        await self._client.aclose()

    def describe(self) -> list[MetricDescriptor]:
        """Return the descriptors of every metric family a scrape can emit."""
        descriptors = list(self._overview.describe())
        for exporter in self._exporters.values():
            descriptors.extend(exporter.describe())
        descriptors.extend([UP, MODULE_UP, MODULE_SCRAPE_DURATION, BUILD_INFO])
        return descriptors

    def _context(self) -> ScrapeContext:
        info = self._overview.node_info
        return ScrapeContext(
            cluster=info.cluster_name,
            node=info.node,
            total_queues=info.total_queues,
            host=self._config.host_info,
            subsystem_name=self._config.subsystem_name,
            subsystem_id=self._config.subsystem_id,
        )

    async def _run(
        self, name: str, exporter: Exporter, context: ScrapeContext
    ) -> tuple[str, Sequence[MetricSample] | None, float]:
        start = time.perf_counter()
        try:
            samples = await exporter.collect(self._client, context)
        except RabbitAPIError as e:
            logger.warning("retrieving %s failed: %s", name, e)
            samples = None
        return name, samples, time.perf_counter() - start

    async def scrape(self) -> list[MetricSample]:
        """Collect all metrics from the broker.

        Failing exporters are reported through module_up and up; they never
        raise.

        Returns:
            Samples of every exporter plus the health metrics.
        """
        async with self._lock:
            start = time.perf_counter()
            results = [
                await self._run(self._overview.name, self._overview, self._context())
            ]
            context = self._context()
            results.extend(
                await asyncio.gather(
                    *(
                        self._run(name, exporter, context)
                        for name, exporter in self._exporters.items()
                    )
                )
            )

            samples: list[MetricSample] = []
            all_up = True
            for name, exporter_samples, duration in results:
                module_labels = {
                    "cluster": context.cluster,
                    "node": context.node,
                    "module": name,
                }
                if exporter_samples is None:
                    all_up = False
                else:
                    samples.extend(exporter_samples)
                # names are unknown until the first overview succeeded
                if context.cluster and context.node:
                    samples.append(sample(MODULE_SCRAPE_DURATION, duration, module_labels))
                samples.append(
                    sample(MODULE_UP, 0 if exporter_samples is None else 1, module_labels)
                )

            samples.append(sample(BUILD_INFO, 1, self._build_info.labels()))
            samples.append(
                sample(
                    UP,
                    1 if all_up else 0,
                    {"cluster": context.cluster, "node": context.node},
                )
            )
            self._last_scrape_ok = all_up
            logger.info("Metrics updated in %.3fs", time.perf_counter() - start)
            return samples
