"""Storage adapters for exporter logs."""

from rabbitmq_exporter.adapters.storage.ring_buffer import RingBufferLogStorage

__all__ = ["RingBufferLogStorage"]
