#!/usr/bin/env python3
"""
JSON Utilities Module

Centralized JSON reading and writing with consistent formatting, plus the
compact serializer whose output matches JavaScript's JSON.stringify. Backup
checksums are computed over that compact text, so envelopes produced by the
web application and by this package verify against each other.
"""

import json
import math
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any


def write_json(filepath: str | Path, data: Any, ensure_ascii: bool = False, sort_keys: bool = False) -> None:
    """
    Write data to a JSON file with standard pretty-printing.

    Args:
        filepath: Path to the JSON file
        data: Data to write to the file
        ensure_ascii: If True, escape non-ASCII characters (default: False)
        sort_keys: If True, sort dictionary keys (default: False)
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=ensure_ascii, sort_keys=sort_keys, default=_json_default)


def read_json(filepath: str | Path) -> Any:
    """
    Read data from a JSON file.

    Args:
        filepath: Path to the JSON file

    Returns:
        The parsed JSON data
    """
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)


def format_json(data: Any, ensure_ascii: bool = False, sort_keys: bool = False) -> str:
    """
    Format data as a pretty-printed JSON string.

    Args:
        data: Data to format
        ensure_ascii: If True, escape non-ASCII characters (default: False)
        sort_keys: If True, sort dictionary keys (default: False)

    Returns:
        Pretty-printed JSON string
    """
    return json.dumps(data, indent=2, ensure_ascii=ensure_ascii, sort_keys=sort_keys, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def js_number(value: int | float | Decimal) -> str:
    """
    Render a number the way JavaScript's Number#toString does.

    Examples:
        js_number(5000.0) -> "5000"
        js_number(49.9) -> "49.9"
        js_number(0.00001) -> "0.00001"
        js_number(1e-7) -> "1e-7"
    """
    if isinstance(value, bool):
        raise TypeError("Booleans are not numbers")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Decimal):
        value = float(value)

    if not math.isfinite(value):
        return "null"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))

    text = repr(value)
    if "e" not in text:
        return text

    mantissa, exponent_str = text.split("e")
    exponent = int(exponent_str)
    if -7 < exponent < 21:
        return format(Decimal(text), "f")
    sign = "+" if exponent > 0 else "-"
    return f"{mantissa}e{sign}{abs(exponent)}"


def to_js_json(data: Any) -> str:
    """
    Serialize to compact JSON text identical to JavaScript's JSON.stringify.

    Keys keep insertion order, non-ASCII characters are emitted verbatim and
    integral floats lose their fractional part. Dates become ISO strings.

    Args:
        data: JSON-compatible structure (dicts, lists, str, numbers, bool, None)

    Returns:
        Compact JSON text
    """
    if data is None:
        return "null"
    if data is True:
        return "true"
    if data is False:
        return "false"
    if isinstance(data, str):
        return json.dumps(data, ensure_ascii=False)
    if isinstance(data, (int, float, Decimal)):
        return js_number(data)
    if isinstance(data, (datetime, date)):
        return json.dumps(data.isoformat())
    if isinstance(data, dict):
        members = [f"{json.dumps(str(key), ensure_ascii=False)}:{to_js_json(value)}" for key, value in data.items()]
        return "{" + ",".join(members) + "}"
    if isinstance(data, (list, tuple)):
        return "[" + ",".join(to_js_json(item) for item in data) + "]"
    raise TypeError(f"Object of type {type(data).__name__} is not JSON serializable")
