"""Ring buffer storage adapter for exporter logs.

Provides bounded in-memory storage that automatically evicts oldest
entries when the buffer is full, so the /logs endpoint never grows the
process memory beyond a fixed number of records.
"""

import threading
from collections import deque

from rabbitmq_exporter.core.models import LogEntry

DEFAULT_MAX_SIZE = 1000


class RingBufferLogStorage:
    """Ring buffer implementation of LogStoragePort.

    Stores log entries in a fixed-size circular buffer. When the buffer
    is full, the oldest entry is automatically evicted to make room for
    new entries. Writes come from the logging handler, which may run on
    any thread, so access is guarded by a lock.

    Args:
        max_size: Maximum number of entries to store.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        self._buffer: deque[LogEntry] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        with self._lock:
            self._buffer.append(entry)

    def read(self, since: float = 0, level: str | None = None) -> list[LogEntry]:
        """Read log entries since the given timestamp.

        Returns entries with timestamp > since, ordered by timestamp ascending.
        When level is given, only entries of that level are returned.
        """
        with self._lock:
            entries = list(self._buffer)
        filtered = [
            e
            for e in entries
            if e.timestamp > since and (level is None or e.level == level.upper())
        ]
        return sorted(filtered, key=lambda e: e.timestamp)

    def count(self) -> int:
        """Return the number of stored entries."""
        with self._lock:
            return len(self._buffer)
