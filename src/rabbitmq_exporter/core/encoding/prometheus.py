"""Prometheus text exposition format encoder for metric samples."""

import math
from collections.abc import Iterable

from rabbitmq_exporter.core.models import MetricDescriptor, MetricSample

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def format_value(value: float) -> str:
    """Render a sample value the way Prometheus parses it."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _format_labels(labels: dict[str, str]) -> str:
    if not labels:
        return ""
    pairs = ",".join(
        f'{key}="{_escape_label_value(value)}"' for key, value in labels.items()
    )
    return "{" + pairs + "}"


def encode_metrics(
    samples: Iterable[MetricSample],
    descriptors: Iterable[MetricDescriptor] = (),
) -> str:
    """Encode metric samples in Prometheus text format.

    Samples are grouped by metric name. Families with a descriptor get
    HELP and TYPE lines; families are emitted in name order, samples in
    the order they were given.

    Args:
        samples: An iterable of MetricSample objects.
        descriptors: Descriptors of the metric families.

    Returns:
        Text exposition ending with a newline.
        Empty string if there are no samples.
    """
    families: dict[str, list[MetricSample]] = {}
    for sample in samples:
        families.setdefault(sample.name, []).append(sample)
    known = {descriptor.name: descriptor for descriptor in descriptors}

    lines = []
    for name in sorted(families):
        descriptor = known.get(name)
        if descriptor is not None:
            lines.append(f"# HELP {name} {_escape_help(descriptor.help)}")
            lines.append(f"# TYPE {name} {descriptor.type}")
        for sample in families[name]:
            lines.append(
                f"{name}{_format_labels(sample.labels)} {format_value(sample.value)}"
            )

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
