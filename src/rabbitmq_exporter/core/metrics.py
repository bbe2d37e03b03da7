"""Metric helper functions for creating descriptors and samples."""

import time

from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample

NAMESPACE = "rabbitmq"


def fq_name(name: str, namespace: str = NAMESPACE) -> str:
    """Build a fully qualified metric name (e.g., rabbitmq_queue_messages)."""
    return f"{namespace}_{name}" if namespace else name


def new_gauge(name: str, help: str) -> MetricDescriptor:
    """Describe a gauge family in the exporter namespace.

    Args:
        name: Metric name without namespace (e.g., "queue_messages")
        help: Description shown in the HELP line

    Returns:
        MetricDescriptor of type gauge
    """
    return MetricDescriptor(name=fq_name(name), help=help, type="gauge")


def new_counter(name: str, help: str) -> MetricDescriptor:
    """Describe a counter family in the exporter namespace.

    Args:
        name: Metric name without namespace (e.g., "queue_disk_reads_total")
        help: Description shown in the HELP line

    Returns:
        MetricDescriptor of type counter
    """
    return MetricDescriptor(name=fq_name(name), help=help, type="counter")


def sample(
    descriptor: MetricDescriptor,
    value: float,
    labels: dict[str, str] | None = None,
) -> MetricSample:
    """Create a sample of a described metric family.

    Args:
        descriptor: Family the sample belongs to
        value: Current value
        labels: Optional dimension labels

    Returns:
        MetricSample with current timestamp
    """
    return MetricSample(
        name=descriptor.name,
        timestamp=time.time(),
        value=value,
        labels=labels or {},
    )
