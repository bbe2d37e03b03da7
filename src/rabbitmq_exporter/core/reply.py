"""Format independent flattening of management API replies.

A reply is decoded once into a format specific tree. Subclasses tell this
module how to walk that tree (which values are key/value collections, which
are arrays, which can be rendered as strings); the flattening rules below are
shared so that JSON and BERT replies of the same broker state produce the
same MetricMap and StatsInfo values.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from contextlib import suppress

from rabbitmq_exporter.core.coercion import parse_floaty
from rabbitmq_exporter.core.models import MetricMap, StatsInfo

logger = logging.getLogger(__name__)

# Receives (key, value); returning False stops the traversal.
Visitor = Callable[[str, object], bool]

DEFAULT_ID_FIELDS = ("name", "id")

_INVALID = object()


class NotKeyValueError(Exception):
    """Raised when a decoded value cannot be read as a key/value collection."""

    def __init__(self, value: object) -> None:
        super().__init__(f"not a key/value collection: {value!r:.120}")
        self.value = value


class Reply(ABC):
    """Base class of the RabbitReply implementations.

    The body is decoded on construction. Undecodable bodies are logged and
    turn every operation into an empty result.
    """

    format_name: str = ""
    decode_errors: tuple[type[Exception], ...] = ()

    def __init__(self, body: bytes) -> None:
        try:
            self._document: object = self._decode(body)
        except self.decode_errors as e:
            logger.warning("Error while decoding %s reply: %s", self.format_name, e)
            self._document = _INVALID

    @property
    def valid(self) -> bool:
        """True if the body could be decoded."""
        return self._document is not _INVALID

    @abstractmethod
    def _decode(self, body: bytes) -> object:
        """Decode the raw body into a format specific tree."""

    @abstractmethod
    def iterate_kv(self, obj: object, visit: Visitor) -> None:
        """Call visit for each (key, value) pair of a key/value collection.

        Pairs are visited in encounter order until visit returns False.

        Raises:
            NotKeyValueError: If obj is not a key/value collection.
        """

    @abstractmethod
    def _as_array(self, value: object) -> Sequence[object] | None:
        """Return the elements of a list-like value, None for anything else."""

    @abstractmethod
    def _stringy(self, value: object) -> str | None:
        """Render value as a label string, None if it has no string form."""

    def is_kv(self, value: object) -> bool:
        """Check whether value can be traversed as a key/value collection."""
        try:
            self.iterate_kv(value, lambda key, item: False)
        except NotKeyValueError:
            return False
        return True

    def _array_length(self, value: object) -> int | None:
        # Non-empty key/value lists are nested objects, not arrays. Empty
        # lists are ambiguous and always counted.
        items = self._as_array(value)
        if items is None:
            return None
        if not items or not self.is_kv(value):
            return len(items)
        return None

    def _add_fields(self, target: MetricMap, prefix: str, obj: object) -> None:
        """Flatten the key/value collection obj into target under prefix.

        Raises:
            NotKeyValueError: If obj is not a key/value collection.
        """

        def visit(key: str, value: object) -> bool:
            self._add_value(target, f"{prefix}.{key}" if prefix else key, value)
            return True

        self.iterate_kv(obj, visit)

    def _add_value(self, target: MetricMap, path: str, value: object) -> None:
        number = parse_floaty(value)
        if number is not None:
            target[path] = number
            return
        length = self._array_length(value)
        if length is not None:
            target[f"{path}_len"] = float(length)
        # strings and other unsupported leaves are dropped
        with suppress(NotKeyValueError):
            self._add_fields(target, path, value)

    def make_map(self) -> MetricMap:
        """Flatten the reply into a MetricMap.

        Numbers and booleans are recorded under their dotted path, arrays as
        ``<path>_len``. Everything else is skipped.

        Returns:
            The flattened values, empty if the reply could not be decoded
            or is nested deeper than the interpreter can recurse.
        """
        metrics: MetricMap = {}
        if not self.valid:
            return metrics
        try:
            self._add_fields(metrics, "", self._document)
        except NotKeyValueError:
            logger.warning("%s reply is not a key/value document", self.format_name)
        except RecursionError:
            logger.warning("%s reply is nested too deeply", self.format_name)
            return {}
        return metrics

    def make_stats_info(
        self,
        labels: Sequence[str],
        id_fields: Sequence[str] = DEFAULT_ID_FIELDS,
    ) -> list[StatsInfo]:
        """Build one StatsInfo per named object of a list reply.

        Args:
            labels: Field names to extract as string labels. Each returned
                StatsInfo carries exactly these labels.
            id_fields: Objects without any of these fields are skipped.

        Returns:
            Records in reply order, empty if the reply could not be decoded
            or is not a list.
        """
        if not self.valid:
            return []
        objects = self._as_array(self._document)
        if objects is None:
            logger.warning(
                "%s statistics reply should contain a list of objects",
                self.format_name,
            )
            return []

        statistics: list[StatsInfo] = []
        for obj in objects:
            info = self._parse_stats_object(obj, labels, id_fields)
            if info is None:
                logger.debug("Ignoring unparseable stats object: %.200r", obj)
                continue
            statistics.append(info)
        return statistics

    def _parse_stats_object(
        self, obj: object, labels: Sequence[str], id_fields: Sequence[str]
    ) -> StatsInfo | None:
        label_values = dict.fromkeys(labels, "")
        metrics: MetricMap = {}
        has_id = False

        def visit(key: str, value: object) -> bool:
            nonlocal has_id
            if key in id_fields:
                has_id = True
            if key in label_values:
                text = self._stringy(value)
                if text is not None:
                    label_values[key] = text
            self._add_value(metrics, key, value)
            return True

        try:
            self.iterate_kv(obj, visit)
        except NotKeyValueError:
            return None
        except RecursionError:
            logger.warning("%s statistics object is nested too deeply", self.format_name)
            return None
        if not has_id:
            return None
        return StatsInfo(labels=label_values, metrics=metrics)

    def get_string(self, key: str) -> str | None:
        """Look up a top-level field and render it as a string.

        Args:
            key: Field name, e.g. "node" or "cluster_name".

        Returns:
            The string value, or None if the field is missing or has no
            string form.
        """
        if not self.valid:
            return None
        result: str | None = None

        def visit(name: str, value: object) -> bool:
            nonlocal result
            if name != key:
                return True
            result = self._stringy(value)
            return False

        try:
            self.iterate_kv(self._document, visit)
        except NotKeyValueError:
            return None
        return result
