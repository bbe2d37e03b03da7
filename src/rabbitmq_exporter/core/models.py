"""Core domain models for broker statistics and exported metrics."""

from dataclasses import dataclass, field

MetricMap = dict[str, float]
"""Flat mapping from a dotted field path to its numeric value."""


@dataclass(frozen=True)
class StatsInfo:
    """Statistics of one named broker object (queue, exchange, node, ...).

    Attributes:
        labels: Exactly the label names requested by the caller. Missing or
            non-string source fields are present with an empty string.
        metrics: Numeric fields of the object, flattened to dotted paths.
    """

    labels: dict[str, str] = field(default_factory=dict)
    metrics: MetricMap = field(default_factory=dict)


@dataclass(frozen=True)
class MetricDescriptor:
    """Name, help text and type of one exported metric family.

    Attributes:
        name: Fully qualified metric name (e.g., rabbitmq_queue_messages).
        help: Human readable description.
        type: Prometheus metric type, "gauge" or "counter".
    """

    name: str
    help: str
    type: str = "gauge"


@dataclass(frozen=True)
class MetricSample:
    """A single metric measurement.

    Attributes:
        name: Metric name (e.g., rabbitmq_queue_messages).
        timestamp: Unix timestamp in seconds.
        value: The metric value.
        labels: Key-value pairs for metric dimensions.
    """

    name: str
    timestamp: float
    value: float
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        timestamp: Unix timestamp in seconds.
        level: Log level (e.g., INFO, ERROR, DEBUG).
        message: The log message.
        attributes: Additional structured fields.
    """

    timestamp: float
    level: str
    message: str
    attributes: dict[str, str | int | float | bool] = field(default_factory=dict)
