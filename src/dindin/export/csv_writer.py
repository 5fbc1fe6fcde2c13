#!/usr/bin/env python3
"""
Delimited-text rendering of exported rows, one flat table per kind.

Cells are pre-formatted to strings so pandas never coerces a nullable
integer column to floats ("3.0"). Lists are joined with "; ".
"""

from collections.abc import Sequence
from typing import Any

import pandas as pd

from ..core.json_utils import js_number


def format_cell(value: Any) -> str:
    """Render one cell the way the web export does."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return js_number(value)
    if isinstance(value, (list, tuple)):
        return "; ".join(format_cell(item) for item in value)
    return str(value)


def rows_to_csv(rows: Sequence[dict[str, Any]], columns: Sequence[str] | None = None) -> str:
    """
    Render rows as CSV text with a header line.

    Args:
        rows: Rows to render
        columns: Column order; defaults to the keys of the first row

    Returns:
        CSV text without a trailing newline, or "" when there are no rows
    """
    if not rows:
        return ""

    headers = list(columns) if columns else list(rows[0].keys())
    frame = pd.DataFrame(
        [[format_cell(row.get(column)) for column in headers] for row in rows],
        columns=headers,
        dtype=str,
    )
    return frame.to_csv(index=False, lineterminator="\n").rstrip("\n")
