"""Integration tests for the scrape collector."""

import asyncio
from collections.abc import Callable

import pytest

from rabbitmq_exporter.adapters.rabbit_client import RabbitClient
from rabbitmq_exporter.collector import (
    BUILD_INFO,
    MODULE_SCRAPE_DURATION,
    MODULE_UP,
    UP,
    Collector,
)
from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.models import MetricSample
from rabbitmq_exporter.version import BuildInfo

BUILD = BuildInfo(version="1.0.0", revision="abc123", branch="main", builddate="2024")


def _values(samples: list[MetricSample], name: str) -> dict[str, float]:
    """Map the module (or empty string) label of each sample to its value."""
    return {s.labels.get("module", ""): s.value for s in samples if s.name == name}


def _comparable(samples: list[MetricSample]) -> set[tuple]:
    return {
        (s.name, tuple(sorted(s.labels.items())), s.value)
        for s in samples
        if s.name != MODULE_SCRAPE_DURATION.name
    }


@pytest.fixture
def make_collector(
    config: ExporterConfig, rabbit_client: Callable[..., RabbitClient]
) -> Callable[..., Collector]:
    """Factory for a Collector talking to the mock broker."""

    def _collector(cfg: ExporterConfig | None = None, **transport_args) -> Collector:
        cfg = cfg or config
        return Collector(cfg, rabbit_client(cfg, **transport_args), build_info=BUILD)

    return _collector


@pytest.mark.exporters
class TestCollector:
    """Tests for Collector.scrape()."""

    @pytest.mark.tier(2)
    async def test_successful_scrape(
        self, make_collector: Callable[..., Collector]
    ) -> None:
        """Every enabled module reports up, and so does the broker."""
        collector = make_collector()

        samples = await collector.scrape()

        assert _values(samples, MODULE_UP.name) == {
            "overview": 1,
            "exchange": 1,
            "node": 1,
            "queue": 1,
        }
        (up,) = [s for s in samples if s.name == UP.name]
        assert up.value == 1
        assert up.labels == {"cluster": "rabbit@host1.example", "node": "rabbit@host1"}
        assert collector.last_scrape_ok is True
        await collector.aclose()

    @pytest.mark.tier(2)
    async def test_exporter_samples_use_overview_identity(
        self, make_collector: Callable[..., Collector]
    ) -> None:
        """Labels of other exporters come from the same scrape's overview."""
        samples = await make_collector().scrape()

        queue_samples = [s for s in samples if s.name == "rabbitmq_queue_messages"]
        assert {s.labels["cluster"] for s in queue_samples} == {"rabbit@host1.example"}
        assert any(s.name == "rabbitmq_queues" for s in samples)
        assert any(s.name == "rabbitmq_node_mem_used" for s in samples)

    @pytest.mark.tier(2)
    async def test_module_scrape_duration(
        self, make_collector: Callable[..., Collector]
    ) -> None:
        """Each module reports how long it took."""
        samples = await make_collector().scrape()

        durations = [s for s in samples if s.name == MODULE_SCRAPE_DURATION.name]
        assert {s.labels["module"] for s in durations} == {
            "overview",
            "exchange",
            "node",
            "queue",
        }
        assert all(s.value >= 0 for s in durations)
        assert all(s.labels["node"] == "rabbit@host1" for s in durations)

    @pytest.mark.tier(2)
    async def test_build_info(self, make_collector: Callable[..., Collector]) -> None:
        """Build info is a constant 1 labeled with version metadata."""
        samples = await make_collector().scrape()

        (info,) = [s for s in samples if s.name == BUILD_INFO.name]
        assert info.value == 1
        assert info.labels == {
            "version": "1.0.0",
            "revision": "abc123",
            "branch": "main",
            "builddate": "2024",
        }

    @pytest.mark.tier(2)
    async def test_failing_module(self, make_collector: Callable[..., Collector]) -> None:
        """A failing endpoint marks its module and the broker down."""
        collector = make_collector(failing=("queues",))

        samples = await collector.scrape()

        modules = _values(samples, MODULE_UP.name)
        assert modules["queue"] == 0
        assert modules["node"] == 1
        assert _values(samples, UP.name) == {"": 0}
        assert not any(s.name == "rabbitmq_queue_messages" for s in samples)
        assert any(s.name == "rabbitmq_node_mem_used" for s in samples)
        assert collector.last_scrape_ok is False

    @pytest.mark.tier(2)
    async def test_failing_overview(self, make_collector: Callable[..., Collector]) -> None:
        """Without an overview, names are empty and durations are omitted."""
        samples = await make_collector(failing=("overview",)).scrape()

        assert _values(samples, MODULE_UP.name)["overview"] == 0
        assert not any(s.name == MODULE_SCRAPE_DURATION.name for s in samples)
        (up,) = [s for s in samples if s.name == UP.name]
        assert up.labels == {"cluster": "", "node": ""}
        assert up.value == 0

    @pytest.mark.tier(2)
    async def test_recovers_after_failure(
        self, make_collector: Callable[..., Collector], broker_routes: dict
    ) -> None:
        """last_scrape_ok follows the most recent scrape."""
        collector = make_collector()
        nodes = broker_routes.pop("nodes")

        await collector.scrape()
        assert collector.last_scrape_ok is False

        broker_routes["nodes"] = nodes
        await collector.scrape()
        assert collector.last_scrape_ok is True

    @pytest.mark.tier(2)
    async def test_healthy_before_first_scrape(
        self, make_collector: Callable[..., Collector]
    ) -> None:
        """A fresh collector is reported healthy."""
        assert make_collector().last_scrape_ok is True

    @pytest.mark.tier(2)
    async def test_json_and_bert_scrapes_match(
        self, make_collector: Callable[..., Collector], config: ExporterConfig
    ) -> None:
        """The reply format does not change the exported samples."""
        everything = config.model_copy(
            update={
                "enabled_exporters": [
                    "connections",
                    "exchange",
                    "federation",
                    "node",
                    "queue",
                    "shovel",
                ]
            }
        )

        json_samples = await make_collector(everything, fmt="json").scrape()
        bert_samples = await make_collector(everything, fmt="bert").scrape()

        assert _comparable(json_samples) == _comparable(bert_samples)
        assert len(_values(json_samples, MODULE_UP.name)) == 7

    @pytest.mark.tier(2)
    async def test_overlapping_scrapes(
        self, make_collector: Callable[..., Collector]
    ) -> None:
        """Concurrent scrapes are serialized and both succeed."""
        collector = make_collector()

        first, second = await asyncio.gather(collector.scrape(), collector.scrape())

        assert _comparable(first) == _comparable(second)

    @pytest.mark.tier(2)
    def test_describe(self, make_collector: Callable[..., Collector]) -> None:
        """describe() covers the enabled exporters and health metrics."""
        names = {d.name for d in make_collector().describe()}

        assert {UP.name, MODULE_UP.name, MODULE_SCRAPE_DURATION.name} <= names
        assert BUILD_INFO.name in names
        assert "rabbitmq_queue_messages" in names
        assert "rabbitmq_connection_channels" not in names

    @pytest.mark.tier(2)
    def test_exporter_names(self, make_collector: Callable[..., Collector]) -> None:
        """Overview is implicit and not listed among the enabled exporters."""
        assert make_collector().exporter_names == ["exchange", "node", "queue"]
