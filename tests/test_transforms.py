"""Tests for the fact table and trend transforms."""

import math
from datetime import datetime

import pandas as pd

from performance_dashboard.transforms import (
    FACT_COLUMNS,
    build_fact_performance,
    build_trend_table,
    filter_agent,
    get_available_agents,
    get_available_months,
    select_record,
)

from conftest import make_record


def _history():
    return build_fact_performance([
        make_record(month="2024-03", adh=91.0),
        make_record(month="2024-01", adh=80.0),
        make_record(month="2024-02", adh=85.0),
        make_record(ic_name="Mike Chen", month="2024-02", adh=70.0),
    ])


# ---------------------------------------------------------------------------
# fact_performance
# ---------------------------------------------------------------------------


def test_fact_columns_and_order():
    fact = _history()
    assert list(fact.columns) == FACT_COLUMNS
    assert fact["ic_name"].tolist() == ["John Smith"] * 3 + ["Mike Chen"]
    assert fact["month"].tolist()[:3] == ["2024-01", "2024-02", "2024-03"]
    assert fact.loc[0, "month_name"] == "January 2024"


def test_fact_coerces_values_and_months():
    fact = build_fact_performance([
        make_record(month=datetime(2024, 5, 17), adh="87%", tnps="n/a"),
    ])
    row = fact.iloc[0]
    assert row["month"] == "2024-05"
    assert row["adh"] == 87.0
    assert math.isnan(row["tnps"])


def test_fact_drops_rows_without_month():
    fact = build_fact_performance([make_record(month=None), make_record(month="soon")])
    assert fact.empty
    assert list(fact.columns) == FACT_COLUMNS


def test_fact_duplicates_keep_last():
    fact = build_fact_performance([
        make_record(adh=70.0),
        make_record(adh=95.0),
    ])
    assert len(fact) == 1
    assert fact.loc[0, "adh"] == 95.0


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def test_select_record_with_previous():
    current, previous = select_record(_history(), "John Smith", "2024-02")
    assert current["adh"] == 85.0
    assert previous["month"] == "2024-01"


def test_select_record_first_month_has_no_previous():
    current, previous = select_record(_history(), "John Smith", "2024-01")
    assert current["month"] == "2024-01"
    assert previous is None


def test_select_record_falls_back_to_latest_month():
    current, _ = select_record(_history(), "John Smith", "2023-07")
    assert current["month"] == "2024-03"


def test_select_record_unknown_agent():
    assert select_record(_history(), "Nobody", "2024-01") == ({}, None)


def test_filter_agent_single_agent_export():
    fact = build_fact_performance([make_record(ic_name=None), make_record(ic_name="", month="2024-02")])
    assert len(filter_agent(fact, "John Smith")) == 2


# ---------------------------------------------------------------------------
# Trend and dropdowns
# ---------------------------------------------------------------------------


def test_trend_table_last_n_months():
    trend = build_trend_table(_history(), "John Smith", n_months=2)
    assert list(trend.columns) == ["month", "month_name", "adh", "tnps", "qa_score"]
    assert trend["month"].tolist() == ["2024-02", "2024-03"]


def test_trend_table_empty_for_unknown_agent():
    assert build_trend_table(_history(), "Nobody").empty


def test_available_agents_and_months():
    fact = _history()
    assert get_available_agents(fact) == ["John Smith", "Mike Chen"]
    assert get_available_months(fact) == ["2024-01", "2024-02", "2024-03"]
    assert get_available_agents(pd.DataFrame(columns=FACT_COLUMNS)) == []
