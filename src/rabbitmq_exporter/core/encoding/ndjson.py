"""NDJSON encoder for log entries."""

import json
from collections.abc import Iterable

from rabbitmq_exporter.core.models import LogEntry


def encode_log_entry(entry: LogEntry) -> str:
    """Encode one log entry as a single JSON line without trailing newline."""
    obj = {
        "timestamp": entry.timestamp,
        "level": entry.level,
        "message": entry.message,
        "attributes": entry.attributes,
    }
    return json.dumps(obj, default=str)


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode log entries to newline-delimited JSON.

    Args:
        entries: An iterable of LogEntry objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no entries.
    """
    lines = [encode_log_entry(entry) for entry in entries]

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
