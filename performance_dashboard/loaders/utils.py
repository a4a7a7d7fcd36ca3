"""
Shared utilities for record ingestion: key normalisation, month coercion,
numeric coercion, header detection.
"""

import logging
import re
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def normalise_key(name: Any) -> str:
    """Normalise an export column name: trim, lowercase, whitespace runs to '_'.

    'IC Name' -> 'ic_name', ' QA_Score ' -> 'qa_score'.
    """
    return re.sub(r"\s+", "_", str(name).strip()).lower()


def normalise_record(record: dict) -> dict:
    """Return a copy of a flat record with normalised keys.

    When two source keys collapse to the same name the later one wins.
    """
    return {normalise_key(k): v for k, v in record.items()}


def is_missing(val: Any) -> bool:
    """True for None, NaN and blank strings."""
    if val is None:
        return True
    if isinstance(val, str):
        return not val.strip()
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        # list-like values
        return False


def is_valid_month(val: Any) -> bool:
    """True when val is a 'YYYY-MM' string with a real month number."""
    return isinstance(val, str) and bool(MONTH_PATTERN.match(val.strip()))


def normalise_month(val: Any) -> str | None:
    """Convert a month cell to 'YYYY-MM'.

    Accepts 'YYYY-MM' strings, datetimes/Timestamps, full date strings and
    Excel serial numbers (1899-12-30 epoch). Returns None for unparseable
    values.
    """
    if is_missing(val):
        return None
    if isinstance(val, str) and is_valid_month(val):
        return val.strip()
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        try:
            ts = pd.Timestamp("1899-12-30") + pd.Timedelta(days=int(val))
        except (ValueError, OverflowError):
            logger.warning("Could not convert serial number %s to month", val)
            return None
        return ts.strftime("%Y-%m")
    try:
        return pd.Timestamp(val).strftime("%Y-%m")
    except (ValueError, TypeError):
        logger.warning("Could not parse month value: %s", val)
        return None


def month_label(month: str) -> str:
    """'2024-03' -> 'March 2024'."""
    return pd.Timestamp(f"{month}-01").strftime("%B %Y")


def safe_float(val: Any) -> float | None:
    """Coerce a value to float, returning None for non-numeric values."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, str):
        val = val.strip()
        if not val:
            return None
        # Handle percentage strings like "87%"
        if val.endswith("%"):
            val = val[:-1]
        try:
            return float(val)
        except ValueError:
            return None
    try:
        result = float(val)
    except (ValueError, TypeError):
        return None
    return None if pd.isna(result) else result


def find_header_row(
    sheet,
    signature: set[str],
    max_rows: int = 20,
) -> int | None:
    """Scan an openpyxl sheet for the row containing signature column names.

    Cell values are normalised before matching. Returns the 1-based row index
    where at least two cells match, or None if not found within `max_rows`.
    """
    for row_idx in range(1, min(max_rows, sheet.max_row) + 1):
        matches = 0
        for cell in sheet[row_idx]:
            if cell.value is not None and normalise_key(cell.value) in signature:
                matches += 1
        if matches >= 2:
            return row_idx
    return None
