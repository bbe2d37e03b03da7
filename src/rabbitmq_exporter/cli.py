"""Command line entry point: ``rabbitmq-exporter``."""

import argparse
import logging
import sys

import uvicorn

from rabbitmq_exporter.adapters.frameworks.asgi import create_asgi_app
from rabbitmq_exporter.adapters.logging import configure_logging
from rabbitmq_exporter.adapters.rabbit_client import RabbitClient, check_url
from rabbitmq_exporter.adapters.storage.ring_buffer import RingBufferLogStorage
from rabbitmq_exporter.collector import Collector
from rabbitmq_exporter.config import ConfigError, load_config
from rabbitmq_exporter.version import __version__

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "conf/rabbitmq.conf"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Prometheus exporter for RabbitMQ")
    parser.add_argument(
        "--config-file",
        default=DEFAULT_CONFIG_FILE,
        help="path to json config (used when the file exists)",
    )
    parser.add_argument(
        "--check-url",
        metavar="URL",
        help="GET URL and exit with 0 on HTTP 200, 1 otherwise",
    )
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.check_url:
        if check_url(args.check_url):
            return 0
        print(f"Health check failed: {args.check_url}", file=sys.stderr)
        return 1

    try:
        config = load_config(args.config_file)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    log_storage = RingBufferLogStorage()
    configure_logging(config, log_storage)
    logger.info("Starting RabbitMQ exporter %s", __version__)
    logger.info("Active configuration: %s", config.summary())

    collector = Collector(config, RabbitClient(config))
    logger.info("Enabled exporters: %s", ", ".join(collector.exporter_names))
    app = create_asgi_app(collector, log_storage)

    uvicorn.run(
        app,
        host=config.publish_addr or "0.0.0.0",
        port=config.publish_port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
