"""BERT (Erlang external term format) decoder for management API replies.

Terms are decoded with ``erlang_py``, which yields:

- tuples as ``tuple``, lists as ``erlang.OtpErlangList`` (or ``list``),
  maps as ``dict``;
- atoms as ``erlang.OtpErlangAtom``, except ``true``/``false`` (``bool``)
  and ``undefined`` (``None``, which has no string form);
- binaries as ``erlang.OtpErlangBinary``, lists of small integers
  (STRING_EXT) as ``bytes``;
- integers of every width as ``int`` and floats as ``float``.

Depending on the broker version a JSON object arrives as one of

- a proplist: ``[{Key, Value}, ...]`` with atom keys,
- a proplist wrapped as ``{struct, [{Key, Value}, ...]}``, left over from
  the broker's old JSON encoder,
- a native map ``#{Key => Value}``.

All three are traversed as the same key/value collection.
"""

import zlib
from collections.abc import Sequence

import erlang

from rabbitmq_exporter.core.coercion import format_bool
from rabbitmq_exporter.core.reply import NotKeyValueError, Reply, Visitor

STRUCT_TAG = "struct"


def _as_slice(value: object) -> Sequence[object] | None:
    """Return the elements of a list or tuple term.

    Lists of small integers arrive as STRING_EXT and decode to bytes.
    """
    if isinstance(value, erlang.OtpErlangList):
        return value.value
    if isinstance(value, bytes):
        return list(value)
    if isinstance(value, (list, tuple)):
        return value
    return None


def _atom_name(value: object) -> str | None:
    if not isinstance(value, erlang.OtpErlangAtom):
        return None
    name = value.value
    if isinstance(name, bytes):
        return name.decode("utf-8", errors="replace")
    if isinstance(name, str):
        return name
    # atom cache references carry an index only
    return None


def _keyed_pair(value: object) -> tuple[str, object] | None:
    """Split a proplist element ``{Key, Value}`` with an atom key."""
    items = _as_slice(value)
    if items is None or len(items) != 2:
        return None
    key = _atom_name(items[0])
    if key is None:
        return None
    return key, items[1]


def _proplist_pairs(value: object) -> Sequence[object] | None:
    """Return the pairs of a (possibly struct wrapped) proplist.

    An empty list is an empty proplist. Otherwise only the first element is
    checked; elements that are not pairs are skipped during iteration. A
    list starting with ``{struct, X}`` is a list of wrapped objects, not a
    proplist.
    """
    items = _as_slice(value)
    if items is None:
        return None
    if not items:
        return items
    wrapped = _keyed_pair(value)
    if wrapped is not None and wrapped[0] == STRUCT_TAG:
        return _proplist_pairs(wrapped[1])
    first = _keyed_pair(items[0])
    if first is not None and first[0] != STRUCT_TAG:
        return items
    return None


class BERTReply(Reply):
    """RabbitReply implementation for ``application/bert`` bodies."""

    format_name = "BERT"
    decode_errors = (
        erlang.ParseException,
        ValueError,
        TypeError,
        RecursionError,
        zlib.error,
    )

    def _decode(self, body: bytes) -> object:
        return erlang.binary_to_term(body)

    def iterate_kv(self, obj: object, visit: Visitor) -> None:
        if isinstance(obj, dict):
            for raw_key, value in obj.items():
                key = self._stringy(raw_key)
                if key is not None and not visit(key, value):
                    return
            return

        pairs = _proplist_pairs(obj)
        if pairs is None:
            raise NotKeyValueError(obj)
        for item in pairs:
            pair = _keyed_pair(item)
            if pair is not None and not visit(*pair):
                return

    def _as_array(self, value: object) -> Sequence[object] | None:
        return _as_slice(value)

    def _stringy(self, value: object) -> str | None:
        if isinstance(value, bool):
            return format_bool(value)
        if isinstance(value, erlang.OtpErlangBinary):
            return value.value.decode("utf-8", errors="replace")
        return _atom_name(value)
