"""Numeric wire codec - hex/decimal strings to exact Python ints and back.

Everything stays in ``int``; no float is ever produced or accepted, so wei
amounts up to 256 bits keep full precision.
"""

from __future__ import annotations

import string
from typing import Any

from matchmaker_client.errors import MalformedNumericField

UINT256_MAX = 2**256 - 1

_HEX_DIGITS = frozenset(string.hexdigits)
_DEC_DIGITS = frozenset(string.digits)


def _strip_prefix(wire: str) -> str:
    if wire[:2] in ("0x", "0X"):
        return wire[2:]
    return wire


def decode_hex_int(wire: Any, field: str = "") -> int:
    """Decode a hex numeral (``0x`` prefix optional) into an int."""
    if not isinstance(wire, str):
        raise MalformedNumericField(f"expected hex string, got {type(wire).__name__}", field)
    digits = _strip_prefix(wire)
    if not digits or not _HEX_DIGITS.issuperset(digits):
        raise MalformedNumericField(f"not a hex numeral: {wire!r}", field)
    return int(digits, 16)


def decode_int(wire: Any, field: str = "") -> int:
    """Decode a ``0x``-prefixed hex or plain decimal numeral into an int.

    JSON integers are accepted as they are; bools and floats are not.
    """
    if isinstance(wire, bool):
        raise MalformedNumericField("expected numeral, got bool", field)
    if isinstance(wire, int):
        if wire < 0:
            raise MalformedNumericField(f"negative value: {wire}", field)
        return wire
    if not isinstance(wire, str):
        raise MalformedNumericField(f"expected numeral, got {type(wire).__name__}", field)
    if wire[:2] in ("0x", "0X"):
        return decode_hex_int(wire, field)
    if not wire or not _DEC_DIGITS.issuperset(wire):
        raise MalformedNumericField(f"not a decimal numeral: {wire!r}", field)
    return int(wire, 10)


def encode_int(value: Any, field: str = "") -> str:
    """Encode a non-negative int as a ``0x``-prefixed lowercase hex quantity."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedNumericField(f"expected int, got {type(value).__name__}", field)
    if value < 0:
        raise MalformedNumericField(f"negative value: {value}", field)
    if value > UINT256_MAX:
        raise MalformedNumericField("value exceeds 256 bits", field)
    return f"0x{value:x}"


def normalize_hex(wire: str) -> str:
    """Canonical spelling of a hex numeral: ``0x`` prefix, lowercase, no leading zeros."""
    digits = _strip_prefix(wire).lower().lstrip("0")
    return f"0x{digits or '0'}"
