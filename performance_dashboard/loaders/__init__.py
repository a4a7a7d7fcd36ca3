"""Record ingestion for spreadsheet exports of agent performance."""

from .spreadsheet import load_performance_export, records_from_payload
from .utils import (
    is_missing,
    is_valid_month,
    month_label,
    normalise_key,
    normalise_month,
    normalise_record,
    safe_float,
)

__all__ = [
    "load_performance_export",
    "records_from_payload",
    "is_missing",
    "is_valid_month",
    "month_label",
    "normalise_key",
    "normalise_month",
    "normalise_record",
    "safe_float",
]
