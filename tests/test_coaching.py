"""Tests for the coaching advisor."""

import numpy as np
import pytest

from performance_dashboard.coaching import (
    COACHING_TIPS,
    FALLBACK_ACTIONS,
    FALLBACK_TIP,
    CoachingAdvisor,
    classify_priority,
    classify_survey_score,
    get_survey_actions,
)
from performance_dashboard.config import DEFAULT_GOALS
from performance_dashboard.kpis import evaluate_record

from conftest import make_record


# ---------------------------------------------------------------------------
# Priority bands
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "current, goal, expected",
    [
        (60, 85, "high"),    # gap 25 > 17
        (75, 85, "medium"),  # gap 10 > 8.5
        (80, 85, "low"),     # gap 5
        (13, 10, "high"),    # gap 3 > 2, direction-agnostic
        (11.5, 10, "medium"),
    ],
)
def test_classify_priority(current, goal, expected):
    assert classify_priority(current, goal) == expected


def test_survey_tiers_and_actions():
    assert classify_survey_score(9) == "success"
    assert classify_survey_score(6) == "warning"
    assert classify_survey_score(5.9) == "danger"
    assert get_survey_actions(3)[0] == "Immediate supervisor review required"


# ---------------------------------------------------------------------------
# Single metric
# ---------------------------------------------------------------------------


def test_generate_coaching_without_rng_is_deterministic():
    advisor = CoachingAdvisor()
    first = advisor.generate_coaching("adh", 70, 85)
    second = advisor.generate_coaching("adh", 70, 85)
    assert first.recommendation == second.recommendation == COACHING_TIPS["adh"][0]
    assert first.name == "ADH"
    assert first.priority == "medium"
    assert first.confidence == pytest.approx(0.85)
    assert first.actions == ["Track login/logout times", "Set calendar reminders", "Review schedule adherence"]


def test_generate_coaching_with_rng_picks_from_pool():
    advisor = CoachingAdvisor(rng=np.random.default_rng(7))
    tips = {advisor.generate_coaching("qa_score", 80, 92).recommendation for _ in range(30)}
    assert tips <= set(COACHING_TIPS["qa_score"])
    assert len(tips) > 1


def test_unknown_metric_uses_fallbacks():
    rec = CoachingAdvisor().generate_coaching("handle_time", 400, 300)
    assert rec.recommendation == FALLBACK_TIP
    assert rec.actions == FALLBACK_ACTIONS
    assert rec.name == "handle_time"


def test_custom_tip_pool():
    advisor = CoachingAdvisor(tips={"tnps": ["Call the customer back"]})
    assert advisor.generate_coaching("tnps", 40, 57).recommendation == "Call the customer back"


# ---------------------------------------------------------------------------
# Evaluation -> recommendations
# ---------------------------------------------------------------------------


def test_recommend_only_underperforming_metrics():
    evaluation = evaluate_record(make_record(adh=70.0, call_refusals=14), DEFAULT_GOALS)
    recs = CoachingAdvisor().recommend(evaluation)
    assert [r.metric for r in recs] == ["adh", "call_refusals"]
    assert recs[1].priority == "high"


def test_recommend_nothing_when_all_goals_met():
    evaluation = evaluate_record(make_record(), DEFAULT_GOALS)
    assert CoachingAdvisor().recommend(evaluation) == []


def test_recommend_skips_missing_metrics():
    evaluation = evaluate_record(make_record(tnps=None), DEFAULT_GOALS)
    assert CoachingAdvisor().recommend(evaluation) == []
