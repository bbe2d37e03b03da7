"""Tests for the ring buffer log storage."""

import threading

import pytest

from rabbitmq_exporter.adapters.storage import RingBufferLogStorage
from rabbitmq_exporter.core.models import LogEntry
from rabbitmq_exporter.core.ports import LogStoragePort


class TestRingBufferLogStorage:
    """Tests for RingBufferLogStorage adapter."""

    @pytest.mark.storage
    def test_implements_log_storage_port(self) -> None:
        """RingBufferLogStorage must satisfy LogStoragePort protocol."""
        assert isinstance(RingBufferLogStorage(), LogStoragePort)

    @pytest.mark.storage
    def test_write_and_read_single_entry(self) -> None:
        """Can write a log entry and read it back."""
        storage = RingBufferLogStorage()
        entry = LogEntry(timestamp=1000.0, level="INFO", message="test message")

        storage.write(entry)

        assert storage.read() == [entry]

    @pytest.mark.storage
    def test_read_returns_empty_when_no_entries(self) -> None:
        """Read returns an empty list when storage is empty."""
        assert RingBufferLogStorage().read() == []

    @pytest.mark.storage
    def test_read_filters_by_since_timestamp(self) -> None:
        """Read only returns entries with timestamp > since."""
        storage = RingBufferLogStorage()
        storage.write(LogEntry(timestamp=1000.0, level="INFO", message="old"))
        storage.write(LogEntry(timestamp=2000.0, level="INFO", message="new"))

        result = storage.read(since=1000.0)

        assert [e.message for e in result] == ["new"]

    @pytest.mark.storage
    def test_read_filters_by_level(self) -> None:
        """Level filter is case insensitive."""
        storage = RingBufferLogStorage()
        storage.write(LogEntry(timestamp=1.0, level="INFO", message="info"))
        storage.write(LogEntry(timestamp=2.0, level="ERROR", message="error"))

        result = storage.read(level="error")

        assert [e.message for e in result] == ["error"]

    @pytest.mark.storage
    def test_read_orders_by_timestamp(self) -> None:
        """Entries written out of order are returned in timestamp order."""
        storage = RingBufferLogStorage()
        storage.write(LogEntry(timestamp=3.0, level="INFO", message="c"))
        storage.write(LogEntry(timestamp=1.0, level="INFO", message="a"))
        storage.write(LogEntry(timestamp=2.0, level="INFO", message="b"))

        assert [e.message for e in storage.read()] == ["a", "b", "c"]

    @pytest.mark.storage
    def test_evicts_oldest_when_full(self) -> None:
        """Oldest entries are dropped once max_size is reached."""
        storage = RingBufferLogStorage(max_size=3)
        for i in range(5):
            storage.write(LogEntry(timestamp=float(i), level="INFO", message=str(i)))

        assert storage.count() == 3
        assert [e.message for e in storage.read()] == ["2", "3", "4"]

    @pytest.mark.storage
    def test_concurrent_writes(self) -> None:
        """Writes from several threads are all recorded."""
        storage = RingBufferLogStorage(max_size=1000)

        def writer(offset: int) -> None:
            for i in range(100):
                storage.write(
                    LogEntry(timestamp=offset + i, level="INFO", message="m")
                )

        threads = [threading.Thread(target=writer, args=(n * 100,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert storage.count() == 400
