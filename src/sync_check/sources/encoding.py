"""
Numeric field decoding for upstream responses.

Execution clients and block explorers encode quantities as 0x-prefixed hex.
Beacon API clients encode them as base-10 strings. Both are validated
strictly: a malformed field is an error, never a silent zero.
"""

from __future__ import annotations

import re
from typing import Any, Final

from sync_check.types import UINT64_MAX, ParseError

HEX_PREFIX: Final = "0x"
"""Prefix of every hex-encoded quantity."""

_HEX_DIGITS: Final = re.compile(r"[0-9a-fA-F]+")
_DECIMAL_DIGITS: Final = re.compile(r"[0-9]+")


def _check_range(value: int, raw: str, source: str, field: str) -> int:
    if value > UINT64_MAX:
        raise ParseError(source, f"{raw!r} overflows uint64", field=field)
    return value


def parse_hex_quantity(raw: Any, *, source: str, field: str) -> int:
    """
    Decode a 0x-prefixed hex quantity into an unsigned 64-bit integer.

    Args:
        raw: The raw JSON value.
        source: Where the value came from, for error messages.
        field: The field name, for error messages.

    Returns:
        The decoded integer.

    Raises:
        ParseError: If the value is missing, not a string, not 0x-prefixed,
            not hex, or does not fit in 64 bits.
    """
    if not isinstance(raw, str):
        raise ParseError(source, f"expected hex string, got {type(raw).__name__}", field=field)
    if not raw.startswith(HEX_PREFIX):
        raise ParseError(source, f"{raw!r} is missing the 0x prefix", field=field)

    digits = raw[len(HEX_PREFIX) :]
    if not _HEX_DIGITS.fullmatch(digits):
        raise ParseError(source, f"{raw!r} is not a hex quantity", field=field)

    return _check_range(int(digits, 16), raw, source, field)


def parse_decimal(raw: Any, *, source: str, field: str) -> int:
    """
    Decode a base-10 string into an unsigned 64-bit integer.

    Signs, whitespace and digit separators are rejected.

    Raises:
        ParseError: If the value is not a string of decimal digits.
    """
    if not isinstance(raw, str):
        raise ParseError(
            source, f"expected decimal string, got {type(raw).__name__}", field=field
        )
    if not _DECIMAL_DIGITS.fullmatch(raw):
        raise ParseError(source, f"{raw!r} is not a base-10 integer", field=field)

    return _check_range(int(raw), raw, source, field)
