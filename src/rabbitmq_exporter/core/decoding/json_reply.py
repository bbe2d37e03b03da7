"""JSON decoder for management API replies."""

import json
from collections.abc import Sequence

from rabbitmq_exporter.core.coercion import format_bool
from rabbitmq_exporter.core.reply import NotKeyValueError, Reply, Visitor


class JSONReply(Reply):
    """RabbitReply implementation for ``application/json`` bodies.

    Every JSON object is a key/value collection; arrays never are, so every
    array contributes a ``_len`` metric.
    """

    format_name = "JSON"
    decode_errors = (json.JSONDecodeError, UnicodeDecodeError, RecursionError)

    def _decode(self, body: bytes) -> object:
        return json.loads(body)

    def iterate_kv(self, obj: object, visit: Visitor) -> None:
        if not isinstance(obj, dict):
            raise NotKeyValueError(obj)
        for key, value in obj.items():
            if not visit(key, value):
                return

    def _as_array(self, value: object) -> Sequence[object] | None:
        if isinstance(value, list):
            return value
        return None

    def _stringy(self, value: object) -> str | None:
        if isinstance(value, bool):
            return format_bool(value)
        if isinstance(value, str):
            return value
        return None
