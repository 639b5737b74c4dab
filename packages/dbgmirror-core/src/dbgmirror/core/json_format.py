"""JSON text for protocol primitives.

The protocol is assembled as text so that field order and the encoding of
non-finite numbers are exactly what clients expect.  ``json.dumps`` would
emit bare ``NaN`` / ``Infinity`` tokens and Python float spellings, so
numbers, strings and dates are formatted here.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

Number = Union[int, float]

_CTRL_CHAR = re.compile('["\\\\\x00-\x1f]')

_CTRL_CHAR_MAP = {
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
    '"': '\\"',
    "\\": "\\\\",
}

# Text of a date that holds no valid time.
INVALID_DATE_TEXT = "Invalid Date"

# Finite numbers at or above this magnitude are written with an exponent.
_EXPONENT_THRESHOLD = 1e21


def _escape(match: re.Match) -> str:
    char = match.group(0)
    mapped = _CTRL_CHAR_MAP.get(char)
    if mapped is not None:
        return mapped
    return "\\u%04x" % ord(char)


def _float_text(value: float) -> str:
    """Shortest round-trip text for a finite, non-zero float."""
    sign = "-" if value < 0 else ""
    mantissa, _, exp = repr(abs(value)).partition("e")
    int_part, _, frac_part = mantissa.partition(".")
    all_digits = int_part + frac_part
    stripped = all_digits.lstrip("0")
    leading = len(all_digits) - len(stripped)
    digits = stripped.rstrip("0") or "0"
    # Decimal point position relative to the first significant digit.
    point = len(int_part) - leading + int(exp or 0)
    count = len(digits)

    if count <= point <= 21:
        return sign + digits + "0" * (point - count)
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits

    exponent = point - 1
    exp_text = ("+" if exponent >= 0 else "-") + str(abs(exponent))
    if count == 1:
        return sign + digits + "e" + exp_text
    return sign + digits[0] + "." + digits[1:] + "e" + exp_text


def number_to_text(value: Number) -> str:
    """Render a number the way the target prints it (``NaN``, ``1e+21``, ``0.5``)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    if isinstance(value, int) and abs(value) < _EXPONENT_THRESHOLD:
        return str(int(value))
    return _float_text(float(value))


def number_to_json(value: Number) -> str:
    """Render a number as JSON; non-finite values become quoted strings."""
    if math.isnan(value):
        return '"NaN"'
    if math.isinf(value):
        return '"Infinity"' if value > 0 else '"-Infinity"'
    return number_to_text(value)


def string_to_json(value: str) -> str:
    if not _CTRL_CHAR.search(value):
        return '"' + value + '"'
    return '"' + _CTRL_CHAR.sub(_escape, value) + '"'


def boolean_to_json(value: bool) -> str:
    return "true" if value else "false"


def date_to_iso8601(value: Optional[datetime]) -> str:
    """Format *value* as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Naive datetimes are taken to be UTC already.  ``None`` stands for an
    invalid date and gives :data:`INVALID_DATE_TEXT`.
    """
    if value is None:
        return INVALID_DATE_TEXT
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return "%d-%02d-%02dT%02d:%02d:%02d.%03dZ" % (
        value.year,
        value.month,
        value.day,
        value.hour,
        value.minute,
        value.second,
        value.microsecond // 1000,
    )


def date_to_json(value: Optional[datetime]) -> str:
    return '"' + date_to_iso8601(value) + '"'


def make_json_pair(name: str, value: str) -> str:
    return '"' + name + '":' + value


def array_to_json_object(content: Iterable[str]) -> str:
    return "{" + ",".join(content) + "}"


def array_to_json_array(content: Iterable[str]) -> str:
    return "[" + ",".join(content) + "]"
