"""Python logging integration for the exporter.

Bridges the standard library logging module to the LogStoragePort (served
at /logs) and sets up console output in either a human readable or an
NDJSON format.
"""

import logging
import sys
import traceback

from rabbitmq_exporter.config import ExporterConfig
from rabbitmq_exporter.core.encoding.ndjson import encode_log_entry
from rabbitmq_exporter.core.models import LogEntry
from rabbitmq_exporter.core.ports import LogStoragePort

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

_DEFAULT_INCLUDE_ATTRS = ["module", "funcName", "lineno"]

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def record_to_entry(
    record: logging.LogRecord, include_attrs: list[str] | None = None
) -> LogEntry:
    """Convert a LogRecord to a LogEntry.

    Args:
        record: The log record.
        include_attrs: LogRecord attributes to copy. Defaults to
            ["module", "funcName", "lineno"].

    Returns:
        LogEntry carrying the selected attributes, any extra fields passed
        via the logging call and exception details if present.
    """
    attr_mapping: dict[str, str | int | float | bool] = {
        "module": record.name,
        "funcName": record.funcName or "",
        "lineno": record.lineno,
        "pathname": record.pathname,
    }
    attributes: dict[str, str | int | float | bool] = {
        key: attr_mapping[key]
        for key in include_attrs or _DEFAULT_INCLUDE_ATTRS
        if key in attr_mapping
    }

    for key, value in record.__dict__.items():
        if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(
            value, (str, int, float, bool)
        ):
            attributes[key] = value

    if record.exc_info:
        exc_type, exc_value, exc_tb = record.exc_info
        if exc_type is not None:
            attributes["exc_type"] = exc_type.__name__
        if exc_value is not None:
            attributes["exc_message"] = str(exc_value)
        if exc_tb is not None:
            attributes["exc_traceback"] = "".join(
                traceback.format_exception(exc_type, exc_value, exc_tb)
            )

    return LogEntry(
        timestamp=record.created,
        level=record.levelname,
        message=record.getMessage(),
        attributes=attributes,
    )


class LogStorageHandler(logging.Handler):
    """Logging handler that writes log records to a LogStoragePort.

    Example:
        ```python
        storage = RingBufferLogStorage()
        logging.getLogger().addHandler(LogStorageHandler(storage))
        ```
    """

    def __init__(
        self,
        storage: LogStoragePort,
        include_attrs: list[str] | None = None,
    ) -> None:
        """Initialize the handler with a log storage backend.

        Args:
            storage: Storage adapter implementing LogStoragePort.
            include_attrs: LogRecord attributes to include.
        """
        super().__init__()
        self._storage = storage
        self._include_attrs = include_attrs

    def emit(self, record: logging.LogRecord) -> None:
        """Write the record to the storage backend."""
        try:
            self._storage.write(record_to_entry(record, self._include_attrs))
        except Exception:
            self.handleError(record)


class NDJSONFormatter(logging.Formatter):
    """Formatter rendering each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        return encode_log_entry(record_to_entry(record))


def configure_logging(
    config: ExporterConfig, storage: LogStoragePort | None = None
) -> None:
    """Configure root logging from the exporter configuration.

    Args:
        config: Supplies LOG_LEVEL and OUTPUT_FORMAT (TTY or JSON).
        storage: Optional log storage receiving every record.
    """
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    console = logging.StreamHandler(sys.stdout)
    if config.output_format.upper() == "JSON":
        console.setFormatter(NDJSONFormatter())
    else:
        console.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(console)
    if storage is not None:
        root.addHandler(LogStorageHandler(storage))
    root.setLevel(level)
