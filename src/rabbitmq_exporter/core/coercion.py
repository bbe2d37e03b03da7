"""Value coercion rules shared by the JSON and BERT reply decoders.

Both decoders route every leaf value through ``parse_floaty`` so that the
same broker state produces bit-identical metric values regardless of the
wire format it arrived in.
"""

import math


def parse_floaty(value: object) -> float | None:
    """Interpret a decoded value as a metric value.

    Floats, integers of any size and booleans are accepted. Booleans map to
    1.0 and 0.0. Integers are converted with ``float()``, which rounds to the
    nearest representable double, so precision is lost above 2**53.
    Integers beyond the double range map to positive or negative infinity.

    Args:
        value: A decoded JSON or Erlang term value.

    Returns:
        The float value, or None for anything else (strings, collections,
        null, atoms other than true/false).
    """
    # bool is a subclass of int and has to be checked first
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, float):
        return value
    return None


def format_bool(value: bool) -> str:
    """Render a boolean the way the broker's JSON encoder does."""
    return "true" if value else "false"
