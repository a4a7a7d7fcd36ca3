"""
Data validation for performance record batches.

Checks structure (required fields present, matched case- and
whitespace-insensitively) and quality (empty values, malformed months,
non-numeric metrics, out-of-range values), and reports the result. The
validator is advisory: bad data is reported, never raised.

Also carries the connection checks and sample-data helpers used when wiring
up a new spreadsheet export.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import requests

from .config import (
    HTTP_TIMEOUT_SECONDS,
    MAX_REPORTED_ISSUES,
    METRIC_REGISTRY,
    REQUIRED_FIELDS,
    VALIDATION_TOLERANCE,
)
from .loaders.spreadsheet import records_from_payload
from .loaders.utils import is_missing, is_valid_month, normalise_record, safe_float

logger = logging.getLogger(__name__)

SAMPLE_AGENTS = ["John Smith", "Sarah Johnson", "Mike Chen", "Emma Wilson", "David Brown"]


@dataclass
class StructureReport:
    missing: list[str]
    extra: list[str]

    @property
    def valid(self) -> bool:
        return not self.missing


@dataclass
class QualityStats:
    total_records: int = 0
    null_values: int = 0
    invalid_dates: int = 0
    invalid_types: int = 0
    out_of_range_values: int = 0
    records_with_issues: int = 0


@dataclass
class ValidationReport:
    """Outcome of validating one batch.

    issues holds at most max_reported_issues strings; overflow counts the
    rest. valid is True when fewer than tolerance * total records are
    affected by any issue.
    """

    source: str
    stats: QualityStats
    issues: list[str] = field(default_factory=list)
    overflow: int = 0
    missing_fields: dict[int, list[str]] = field(default_factory=dict)
    extra_fields: list[str] = field(default_factory=list)
    valid: bool = False

    @property
    def issue_count(self) -> int:
        return len(self.issues) + self.overflow


class DataValidator:
    """Validates batches of performance records.

    Parameters
    ----------
    required_fields : Field names every record must supply (normalised form).
    ranges : field -> (min, max) accepted numeric range.
    tolerance : Share of affected records still accepted as a valid batch.
    max_reported_issues : Issue strings kept in a report before overflow.
    """

    def __init__(
        self,
        required_fields: list[str] | None = None,
        ranges: dict[str, tuple[float, float]] | None = None,
        tolerance: float = VALIDATION_TOLERANCE,
        max_reported_issues: int = MAX_REPORTED_ISSUES,
    ):
        self.required_fields = list(required_fields or REQUIRED_FIELDS)
        self.ranges = ranges or {m: info["range"] for m, info in METRIC_REGISTRY.items()}
        self.tolerance = tolerance
        self.max_reported_issues = max_reported_issues

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def validate_structure(self, sample: dict, source_name: str = "sample") -> StructureReport:
        """Compare one record's keys against the required fields."""
        keys = list(normalise_record(sample))
        missing = [f for f in self.required_fields if f not in keys]
        extra = [k for k in keys if k not in self.required_fields]

        if missing:
            logger.warning("%s: missing required fields %s", source_name, missing)
        if extra:
            logger.info("%s: extra fields %s", source_name, extra)
        return StructureReport(missing=missing, extra=extra)

    # ------------------------------------------------------------------
    # Quality
    # ------------------------------------------------------------------
    def _record_issues(self, index: int, record: dict, stats: QualityStats) -> list[str]:
        issues = []
        label = f"Record {index + 1}"

        for key, value in record.items():
            if is_missing(value):
                stats.null_values += 1
                issues.append(f"{label}: {key} is empty")

        month = record.get("month")
        if not is_missing(month) and not is_valid_month(str(month)):
            stats.invalid_dates += 1
            issues.append(f"{label}: Invalid month format '{month}' (expected YYYY-MM)")

        for field_name, (low, high) in self.ranges.items():
            raw = record.get(field_name)
            if is_missing(raw):
                continue
            value = safe_float(raw)
            if value is None:
                stats.invalid_types += 1
                issues.append(f"{label}: {field_name} value '{raw}' is not numeric")
            elif value < low or value > high:
                stats.out_of_range_values += 1
                issues.append(
                    f"{label}: {field_name} value {value:g} is outside expected range {low}-{high}"
                )

        return issues

    def _report_issues(self, issues: list[str]) -> tuple[list[str], int]:
        shown = issues[: self.max_reported_issues]
        return shown, max(0, len(issues) - len(shown))

    def _is_valid(self, affected: int, total: int) -> bool:
        return total > 0 and affected < total * self.tolerance

    def validate_quality(self, records: list[dict], source_name: str = "batch") -> ValidationReport:
        """Quality checks only: empty values, months, types and ranges."""
        stats = QualityStats(total_records=len(records))
        issues: list[str] = []

        for idx, raw in enumerate(records):
            record_issues = self._record_issues(idx, normalise_record(raw), stats)
            if record_issues:
                stats.records_with_issues += 1
                issues.extend(record_issues)

        shown, overflow = self._report_issues(issues)
        report = ValidationReport(
            source=source_name,
            stats=stats,
            issues=shown,
            overflow=overflow,
            valid=self._is_valid(stats.records_with_issues, stats.total_records),
        )
        self._log_report(report)
        return report

    # ------------------------------------------------------------------
    # Full batch
    # ------------------------------------------------------------------
    def validate(self, records: list[dict], source_name: str = "batch") -> ValidationReport:
        """Structure check of every record plus quality checks."""
        stats = QualityStats(total_records=len(records))
        issues: list[str] = []
        missing_fields: dict[int, list[str]] = {}
        extra: list[str] = []

        for idx, raw in enumerate(records):
            record = normalise_record(raw)
            record_issues = []

            missing = [f for f in self.required_fields if f not in record]
            if missing:
                missing_fields[idx] = missing
                record_issues.append(
                    f"Record {idx + 1}: missing required fields {', '.join(missing)}"
                )
            for key in record:
                if key not in self.required_fields and key not in extra:
                    extra.append(key)

            record_issues.extend(self._record_issues(idx, record, stats))
            if record_issues:
                stats.records_with_issues += 1
                issues.extend(record_issues)

        shown, overflow = self._report_issues(issues)
        report = ValidationReport(
            source=source_name,
            stats=stats,
            issues=shown,
            overflow=overflow,
            missing_fields=missing_fields,
            extra_fields=extra,
            valid=self._is_valid(stats.records_with_issues, stats.total_records),
        )
        self._log_report(report)
        return report

    def _log_report(self, report: ValidationReport) -> None:
        logger.info("%s data quality: %s", report.source, report.stats)
        if report.issue_count == 0:
            logger.info("%s: data quality validation passed", report.source)
            return
        logger.warning("%s: data quality issues found", report.source)
        for issue in report.issues:
            logger.warning("   %s", issue)
        if report.overflow:
            logger.warning("   ... and %d more issues", report.overflow)

    # ------------------------------------------------------------------
    # Connection checks
    # ------------------------------------------------------------------
    def test_spreadsheet(self, url: str, timeout: float = HTTP_TIMEOUT_SECONDS) -> dict[str, Any]:
        """Fetch a spreadsheet export and validate it.

        Returns {"success": True, "records": [...], "record_count": n,
        "report": ValidationReport} or {"success": False, "error": str}.
        """
        logger.info("Testing spreadsheet export at %s", url)
        try:
            response = requests.get(url, headers={"Accept": "application/json"}, timeout=timeout)
            response.raise_for_status()
            records = records_from_payload(response.json())
        except (requests.RequestException, ValueError) as exc:
            logger.error("Spreadsheet connection failed: %s", exc)
            return {"success": False, "error": str(exc)}

        logger.info("Spreadsheet connection successful: %d records", len(records))
        report = self.validate(records, "Spreadsheet") if records else None
        return {
            "success": True,
            "records": records,
            "record_count": len(records),
            "report": report,
        }

    def test_endpoint(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> dict[str, Any]:
        """GET an endpoint and report status and content type."""
        logger.info("Testing endpoint: %s", url)
        try:
            response = requests.get(
                url,
                headers={"Accept": "application/json", **(headers or {})},
                timeout=timeout,
            )
            logger.info("Endpoint responded with status: %s", response.status_code)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Endpoint test failed: %s", exc)
            return {"success": False, "error": str(exc)}

        content_type = response.headers.get("content-type", "")
        result = {"success": True, "status": response.status_code, "content_type": content_type}
        if "application/json" in content_type:
            try:
                result["sample"] = str(response.json())[:200]
            except ValueError:
                logger.warning("Endpoint declared JSON but body did not parse")
        return result

    # ------------------------------------------------------------------
    # Sample data
    # ------------------------------------------------------------------
    def generate_sample_data(
        self,
        months: int = 6,
        end_month: str | None = None,
        seed: int | None = None,
    ) -> list[dict]:
        """Template records: every sample agent for the last `months` months."""
        rng = np.random.default_rng(seed)
        end = pd.Period(end_month, freq="M") if end_month else pd.Period.now("M")
        sample = []

        for offset in range(months):
            month = str(end - offset)
            for name in SAMPLE_AGENTS:
                sample.append({
                    "ic_name": name,
                    "month": month,
                    "adh": round(80 + rng.random() * 20, 2),
                    "weighted_sph": round(90 + rng.random() * 30, 2),
                    "email_sph": round(1.5 + rng.random() * 1.5, 2),
                    "phone_sph": round(2.5 + rng.random() * 2.0, 2),
                    "chat_sph": round(2.0 + rng.random() * 1.5, 2),
                    "tnps": round(45 + rng.random() * 30, 2),
                    "qa_score": round(85 + rng.random() * 15, 2),
                    "call_refusals": int(rng.integers(0, 15)),
                })

        return sample

    def export_sample_csv(self, path: str | Path, **kwargs) -> str:
        """Write generate_sample_data() to CSV; returns the CSV text."""
        df = pd.DataFrame(self.generate_sample_data(**kwargs), columns=REQUIRED_FIELDS)
        csv = df.to_csv(index=False)
        Path(path).write_text(csv, encoding="utf-8")
        logger.info("Wrote %d sample rows to %s", len(df), path)
        return csv
