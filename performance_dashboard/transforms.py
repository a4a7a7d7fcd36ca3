"""
Data transforms: coerce raw export records into the typed performance fact
table and derive the per-agent trend table.
"""

import logging

import pandas as pd

from .config import METRIC_REGISTRY
from .loaders.utils import is_missing, month_label, normalise_month, safe_float

logger = logging.getLogger(__name__)

FACT_COLUMNS = ["ic_name", "month", "month_name", *METRIC_REGISTRY]

TREND_METRICS = ("adh", "tnps", "qa_score")


def build_fact_performance(records: list[dict]) -> pd.DataFrame:
    """Coerce raw records into fact_performance.

    - Months are normalised to 'YYYY-MM'; rows without a usable month are
      dropped (they cannot be placed in an agent's series).
    - Metric values are coerced to float; non-numeric values become NaN.
    - (ic_name, month) is unique: duplicates keep the last occurrence.

    Returns
    -------
    fact_performance DataFrame with columns:
        ic_name, month, month_name, adh, weighted_sph, email_sph, phone_sph,
        chat_sph, tnps, qa_score, call_refusals
    sorted by ic_name then month.
    """
    rows = []
    dropped = 0

    for record in records:
        month = normalise_month(record.get("month"))
        if month is None:
            dropped += 1
            continue

        name = record.get("ic_name")
        row = {
            "ic_name": None if is_missing(name) else str(name).strip(),
            "month": month,
            "month_name": month_label(month),
        }
        for metric in METRIC_REGISTRY:
            row[metric] = safe_float(record.get(metric))
        rows.append(row)

    if dropped:
        logger.warning("Dropped %d records without a usable month", dropped)

    if not rows:
        return pd.DataFrame(columns=FACT_COLUMNS)

    df = pd.DataFrame(rows, columns=FACT_COLUMNS)
    for metric in METRIC_REGISTRY:
        df[metric] = pd.to_numeric(df[metric], errors="coerce")

    before = len(df)
    # NaN names compare unequal in drop_duplicates, so key on a filled copy
    dupes = df.assign(_agent=df["ic_name"].fillna("")).duplicated(
        subset=["_agent", "month"], keep="last"
    )
    df = df[~dupes]
    if len(df) < before:
        logger.warning("Collapsed %d duplicate (agent, month) records", before - len(df))

    df = df.sort_values(["ic_name", "month"], na_position="first").reset_index(drop=True)
    logger.info("Built fact_performance with %d rows", len(df))
    return df


def filter_agent(fact: pd.DataFrame, agent: str | None) -> pd.DataFrame:
    """Rows for one agent.

    Single-agent exports carry no ic_name column values; those are returned
    whole.
    """
    if fact.empty or not agent or fact["ic_name"].isna().all():
        return fact
    return fact[fact["ic_name"] == agent]


def select_record(
    fact: pd.DataFrame,
    agent: str | None,
    month: str | None,
) -> tuple[dict, dict | None]:
    """Return (current, previous) records for an agent and month.

    Falls back to the agent's latest month when the requested month is
    absent. current is {} when the agent has no data; previous is the record
    for the month before current, if present.
    """
    series = filter_agent(fact, agent).sort_values("month")
    if series.empty:
        return {}, None

    matches = series[series["month"] == month] if month else series.iloc[0:0]
    if matches.empty:
        pos = len(series) - 1
    else:
        pos = series.index.get_loc(matches.index[-1])

    current = series.iloc[pos].to_dict()
    previous = series.iloc[pos - 1].to_dict() if pos > 0 else None
    return current, previous


def build_trend_table(
    fact: pd.DataFrame,
    agent: str | None,
    n_months: int = 6,
    metrics: tuple[str, ...] = TREND_METRICS,
) -> pd.DataFrame:
    """Last n_months of the agent's series for the trend chart.

    Returns
    -------
    DataFrame with columns: month, month_name, and one column per metric.
    """
    cols = ["month", "month_name", *metrics]
    series = filter_agent(fact, agent)
    if series.empty:
        return pd.DataFrame(columns=cols)
    return series.sort_values("month")[cols].tail(n_months).reset_index(drop=True)


def get_available_agents(fact: pd.DataFrame) -> list[str]:
    """Sorted agent names for UI dropdowns."""
    if fact.empty:
        return []
    return sorted(fact["ic_name"].dropna().unique().tolist())


def get_available_months(fact: pd.DataFrame) -> list[str]:
    """Sorted 'YYYY-MM' months present in the fact table."""
    if fact.empty:
        return []
    return sorted(fact["month"].unique().tolist())
