"""Output formatting for query results."""

import math
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import Any

import orjson

from ..utils.datetime import format_date, format_interval, format_timestamp

NULL_TEXT = "NULL"
INVALID_UTF8_TEXT = "<invalid utf8>"


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _json_default(value: Any) -> str:
    return str(value)


def display_value(value: Any) -> str:
    """Convert one DuckDB result cell to its display text.

    Booleans render lowercase, timestamps as UTC with millisecond precision,
    blobs as a byte count placeholder and nested values as compact JSON.
    """
    if value is None:
        return NULL_TEXT
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            return INVALID_UTF8_TEXT
        return value
    # datetime is a date subclass; check it first
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, timedelta):
        return format_interval(value)
    if isinstance(value, bytes | bytearray | memoryview):
        return f"<{len(value)} bytes>"
    if isinstance(value, list | tuple | dict):
        return orjson.dumps(value, default=_json_default, option=orjson.OPT_NON_STR_KEYS).decode()
    return str(value)


def _border(widths: Sequence[int], left: str, mid: str, right: str) -> str:
    return left + mid.join("─" * (w + 2) for w in widths) + right


def _row_line(cells: Sequence[str], widths: Sequence[int]) -> str:
    padded = " │ ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells))
    return f"│ {padded} │"


def format_table(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Format results as a table with Unicode box-drawing characters.

    ┌──────────┬───────┐
    │ column1  │ col2  │
    ├──────────┼───────┤
    │ value1   │ val2  │
    └──────────┴───────┘
    (N rows)

    An empty result is just the header names and ``(0 rows)``.
    """
    if not rows:
        return " | ".join(columns) + "\n(0 rows)"

    widths = [
        max([len(name)] + [len(row[i]) for row in rows if i < len(row)])
        for i, name in enumerate(columns)
    ]

    lines = [
        _border(widths, "┌", "┬", "┐"),
        _row_line(columns, widths),
        _border(widths, "├", "┼", "┤"),
    ]
    lines.extend(_row_line(row, widths) for row in rows)
    lines.append(_border(widths, "└", "┴", "┘"))

    row_word = "row" if len(rows) == 1 else "rows"
    lines.append(f"({len(rows)} {row_word})")
    return "\n".join(lines)


def format_tsv(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Format results as tab-separated values, header line first."""
    lines = ["\t".join(columns)]
    lines.extend("\t".join(row) for row in rows)
    return "\n".join(lines)
