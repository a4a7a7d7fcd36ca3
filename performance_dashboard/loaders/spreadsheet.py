"""
Loader for spreadsheet exports of agent performance.

The live source is an Apps Script web endpoint that serialises the sheet as a
JSON array of flat objects, one per row, keyed by the header cells
('IC Name', 'Month', 'ADH', 'Weighted_SPH', ...). The same sheet can also be
exported by hand to .json, .csv or .xlsx; all forms end up as a list of flat
dicts with normalised keys. Schema enforcement is left to the validator.
"""

import json
import logging
from pathlib import Path
from typing import Any

import openpyxl
import pandas as pd

from ..config import REQUIRED_FIELDS
from .utils import find_header_row, is_missing, normalise_key, normalise_record

logger = logging.getLogger(__name__)


def records_from_payload(payload: Any) -> list[dict]:
    """Turn a decoded export payload into records with normalised keys.

    Raises
    ------
    ValueError
        If the payload carries an 'error' member or is not a list of objects.
    """
    if isinstance(payload, dict):
        if payload.get("error"):
            raise ValueError(str(payload["error"]))
        # some script deployments wrap the rows
        payload = payload.get("data", payload.get("records"))

    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON array of records, got {type(payload).__name__}")

    records = []
    for idx, row in enumerate(payload):
        if not isinstance(row, dict):
            raise ValueError(f"Record {idx + 1} is not an object")
        records.append(normalise_record(row))
    return records


def _load_xlsx(path: Path) -> list[dict]:
    """Read the first sheet whose header row carries the export columns.

    Assumptions
    -----------
    - One header row within the first 20 rows (title rows above it are
      skipped).
    - Data runs contiguously below the header; the first fully blank row
      ends the table.
    """
    try:
        wb = openpyxl.load_workbook(path, data_only=True)
    except Exception:
        logger.exception("Failed to open spreadsheet export: %s", path)
        raise

    signature = set(REQUIRED_FIELDS)
    records: list[dict] = []

    for ws in wb.worksheets:
        header_row = find_header_row(ws, signature)
        if header_row is None:
            continue

        headers = [
            normalise_key(cell.value) if cell.value is not None else None
            for cell in ws[header_row]
        ]
        for row in ws.iter_rows(min_row=header_row + 1, values_only=True):
            if all(is_missing(v) for v in row):
                break
            records.append({h: v for h, v in zip(headers, row) if h})
        logger.info("Read %d rows from sheet '%s'", len(records), ws.title)
        break
    else:
        logger.warning("No sheet with performance export headers in %s", path)

    wb.close()
    return records


def load_performance_export(path: str | Path) -> list[dict]:
    """Load a saved spreadsheet export (.json, .csv or .xlsx).

    Returns
    -------
    List of flat records with normalised keys.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        records = records_from_payload(json.loads(path.read_text(encoding="utf-8")))
    elif suffix == ".csv":
        df = pd.read_csv(path, dtype={"Month": str, "month": str})
        df = df.astype(object).where(df.notna(), None)
        records = [normalise_record(r) for r in df.to_dict(orient="records")]
    elif suffix in (".xlsx", ".xlsm"):
        records = _load_xlsx(path)
    else:
        raise ValueError(f"Unsupported export format: {path.suffix}")

    logger.info("Loaded %d performance records from %s", len(records), path)
    return records
