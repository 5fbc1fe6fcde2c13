#!/usr/bin/env python3
"""
Backup Checksum Codec

Seals a backup payload with a 32-bit rolling hash over its compact JSON text.
The algorithm is fixed for cross-version compatibility with envelopes the
web application produced:

    h = 0
    for each UTF-16 code unit c of JSON.stringify(payload):
        h = int32(h * 31 + c)
    checksum = lowercase hex of abs(h)

This is an integrity check against accidental corruption, not a signature.
"""

from typing import Any

from ..core.json_utils import to_js_json

_UINT32 = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def hash_text(text: str) -> int:
    """
    32-bit signed rolling hash of a string's UTF-16 code units.

    Characters outside the Basic Multilingual Plane contribute their two
    surrogate code units, exactly as JavaScript's charCodeAt sees them.
    """
    encoded = text.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + code_unit) & _UINT32
    if h & _INT32_SIGN:
        h -= 1 << 32
    return h


def seal(payload: Any) -> str:
    """
    Compute the checksum of a payload.

    Args:
        payload: JSON-compatible payload, keys in envelope order

    Returns:
        Lowercase hex string without prefix or padding
    """
    return format(abs(hash_text(to_js_json(payload))), "x")


def verify(payload: Any, checksum: Any) -> bool:
    """Check that a payload still matches its sealed checksum."""
    if not isinstance(checksum, str):
        return False
    return seal(payload) == checksum
