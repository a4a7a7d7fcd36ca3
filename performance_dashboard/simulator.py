"""
Synthetic data generator for the performance dashboard.

Generates plausible agent performance records, development goals and tNPS
surveys for demos and as the fallback when a data source is unavailable.
All values are synthetic; no real agent data is used.
"""

from datetime import date, timedelta

import numpy as np
import pandas as pd

from .config import DEFAULT_AGENTS
from .state import GOAL_IN_PROGRESS, DevelopmentGoal, SurveyRecord

# Seed for reproducibility
_RNG = np.random.default_rng(42)

# ---------------------------------------------------------------------------
# Typical agent ranges: (low, spread) -> low + U(0, 1) * spread
# ---------------------------------------------------------------------------
_METRIC_PARAMS = {
    "adh": (82, 15),
    "weighted_sph": (95, 20),
    "email_sph": (1.8, 1.0),
    "phone_sph": (3.0, 1.5),
    "chat_sph": (2.5, 1.0),
    "tnps": (50, 20),
    "qa_score": (88, 10),
}
_MAX_REFUSALS = 15

_DEVELOPMENT_GOALS = [
    ("Improve Email Response Time",
     "Increase email SPH to meet goal of 2.1 by end of quarter", 30, "high", 65),
    ("Customer Satisfaction Focus",
     "Improve tNPS score through better customer engagement", 45, "medium", 30),
    ("Quality Assurance Excellence",
     "Achieve consistent QA scores above 95%", 60, "medium", 80),
]

_SURVEYS = [
    (2, 8, "Agent was very helpful and resolved my issue quickly. Great experience!", "Premium"),
    (5, 6, "The solution worked but it took longer than expected to get help.", "Standard"),
    (7, 9, "Excellent service! The agent went above and beyond to help me.", "Enterprise"),
]


def generate_performance_records(
    agents: list[str] | None = None,
    n_months: int = 6,
    end_month: str | None = None,
    rng: np.random.Generator | None = None,
) -> list[dict]:
    """Generate n_months of records per agent, oldest first, ending at end_month.

    Records use the spreadsheet export's field names so they flow through the
    same validation and transforms as live data.
    """
    rng = _RNG if rng is None else rng
    agents = agents or DEFAULT_AGENTS
    end = pd.Period(end_month, freq="M") if end_month else pd.Period.now("M")
    rows = []

    for agent in agents:
        for offset in range(n_months - 1, -1, -1):
            row = {"ic_name": agent, "month": str(end - offset)}
            for metric, (low, spread) in _METRIC_PARAMS.items():
                row[metric] = round(low + rng.random() * spread, 2)
            row["call_refusals"] = int(rng.integers(0, _MAX_REFUSALS))
            rows.append(row)

    return rows


def generate_development_goals(today: date | None = None) -> list[DevelopmentGoal]:
    """Seed development goals due 30-60 days out."""
    today = today or date.today()
    goals = []
    for title, description, days, priority, progress in _DEVELOPMENT_GOALS:
        goals.append(DevelopmentGoal(
            title=title,
            description=description,
            target_date=today + timedelta(days=days),
            priority=priority,
            progress=progress,
            status=GOAL_IN_PROGRESS,
        ))
    return goals


def generate_surveys(today: date | None = None) -> list[SurveyRecord]:
    """Recent tNPS survey responses, newest first."""
    today = today or date.today()
    return [
        SurveyRecord(
            date=today - timedelta(days=days_ago),
            score=score,
            feedback=feedback,
            customer_type=customer_type,
        )
        for days_ago, score, feedback, customer_type in _SURVEYS
    ]
