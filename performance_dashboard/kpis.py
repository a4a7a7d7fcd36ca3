"""
Metric evaluation functions: pure functions with no side effects.

Provides status-tier classification, goal progress, month-over-month change,
per-record evaluation against a goal set, and tNPS survey aggregation.
"""

import logging
from typing import Any, Iterable

import pandas as pd

from .config import METRIC_REGISTRY

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_WARNING = "warning"
STATUS_DANGER = "danger"
STATUS_UNKNOWN = "unknown"

# Warning band around the goal
WARNING_FLOOR = 0.8  # higher-is-better
WARNING_CEILING = 1.2  # lower-is-better

EVALUATION_COLUMNS = [
    "metric", "name", "unit", "current", "goal",
    "lower_is_better", "status", "progress", "change_pct",
]


def _absent(value: Any) -> bool:
    return value is None or bool(pd.isna(value))


def get_metric_status(
    current: float | None,
    goal: float,
    lower_is_better: bool = False,
) -> str:
    """Return 'success', 'warning', 'danger' or 'unknown'.

    Logic
    -----
    - current absent: unknown

    - higher is better:
        success  if current >= goal
        warning  if current >= goal * 0.8
        danger   otherwise

    - lower is better:
        success  if current <= goal
        warning  if current <= goal * 1.2
        danger   otherwise
    """
    if _absent(current):
        return STATUS_UNKNOWN

    if lower_is_better:
        if current <= goal:
            return STATUS_SUCCESS
        if current <= goal * WARNING_CEILING:
            return STATUS_WARNING
        return STATUS_DANGER

    if current >= goal:
        return STATUS_SUCCESS
    if current >= goal * WARNING_FLOOR:
        return STATUS_WARNING
    return STATUS_DANGER


def calc_progress(
    current: float | None,
    goal: float,
    lower_is_better: bool = False,
) -> float:
    """Progress towards goal as a percentage clamped to [0, 100].

    Higher-is-better uses current/goal; lower-is-better uses the inverse
    ratio goal/current, so hitting the goal exactly is 100 either way.
    """
    if _absent(current):
        return 0.0

    if goal <= 0:
        met = get_metric_status(current, goal, lower_is_better) == STATUS_SUCCESS
        return 100.0 if met else 0.0

    if lower_is_better:
        if current <= 0:
            return 100.0
        ratio = goal / current
    else:
        ratio = current / goal

    return float(max(0.0, min(100.0, ratio * 100)))


def calc_change(current: float | None, previous: float | None) -> float:
    """Percentage change from previous to current; 0 when previous is absent or 0."""
    if _absent(current) or _absent(previous) or previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def is_underperforming(
    current: float | None,
    goal: float,
    lower_is_better: bool = False,
) -> bool:
    """True when current is strictly on the wrong side of goal."""
    if _absent(current):
        return False
    return current > goal if lower_is_better else current < goal


def evaluate_record(
    record: dict,
    goals: dict[str, float],
    previous: dict | None = None,
) -> pd.DataFrame:
    """Evaluate every registry metric of one performance record.

    Parameters
    ----------
    record : Performance record (row of fact_performance as a dict). May be
             empty, in which case every metric is 'unknown'.
    goals : metric name -> goal target.
    previous : Prior month's record, for change_pct.

    Returns
    -------
    DataFrame with columns:
        metric, name, unit, current, goal, lower_is_better, status,
        progress, change_pct
    in registry order.
    """
    rows = []
    for metric, info in METRIC_REGISTRY.items():
        goal = goals.get(metric)
        if goal is None:
            logger.warning("No goal configured for '%s'; skipping", metric)
            continue

        lower = info["direction"] == "lower_is_better"
        current = record.get(metric)
        if _absent(current):
            current = None
        prior = previous.get(metric) if previous else None

        rows.append({
            "metric": metric,
            "name": info["name"],
            "unit": info["unit"],
            "current": current,
            "goal": goal,
            "lower_is_better": lower,
            "status": get_metric_status(current, goal, lower),
            "progress": calc_progress(current, goal, lower),
            "change_pct": calc_change(current, prior),
        })

    return pd.DataFrame(rows, columns=EVALUATION_COLUMNS)


def get_status_counts(evaluation: pd.DataFrame) -> dict[str, int]:
    """Count of metrics per status tier, all four tiers present."""
    counts = evaluation["status"].value_counts() if not evaluation.empty else {}
    return {
        status: int(counts.get(status, 0))
        for status in (STATUS_SUCCESS, STATUS_WARNING, STATUS_DANGER, STATUS_UNKNOWN)
    }


def summarise_surveys(surveys: Iterable) -> dict:
    """Aggregate tNPS survey records.

    Scores are on a 0-10 scale; the dashboard's tNPS figure is the mean
    score times ten.

    Returns
    -------
    {"count": int, "avg_score": float | None, "tnps": float | None}
    """
    scores = [s.score for s in surveys if not _absent(s.score)]
    if not scores:
        return {"count": 0, "avg_score": None, "tnps": None}

    avg = sum(scores) / len(scores)
    return {"count": len(scores), "avg_score": avg, "tnps": avg * 10}
