"""Tests for goals, development goals and session state."""

from datetime import date

import pandas as pd
import pytest

from performance_dashboard.config import DEFAULT_GOALS, ROLE_MANAGER, UserState
from performance_dashboard.state import AppState, DevelopmentGoal, GoalSet
from performance_dashboard.transforms import build_fact_performance

from conftest import make_record

MANAGER = UserState(name="Dana Lee", role=ROLE_MANAGER)
IC = UserState(name="John Smith")


# ---------------------------------------------------------------------------
# GoalSet
# ---------------------------------------------------------------------------


def test_goal_directions_follow_registry():
    goals = GoalSet(DEFAULT_GOALS)
    assert goals["call_refusals"].lower_is_better
    assert not goals["adh"].lower_is_better
    assert "tnps" in goals
    assert list(goals) == list(DEFAULT_GOALS)


def test_ic_cannot_edit_goals():
    goals = GoalSet(DEFAULT_GOALS)
    with pytest.raises(PermissionError):
        goals.update({"adh": 90}, IC)
    assert goals["adh"].target == 85


def test_manager_edits_goals():
    goals = GoalSet(DEFAULT_GOALS)
    targets = goals.update({"adh": "90", "call_refusals": 8}, MANAGER)
    assert targets["adh"] == 90.0
    assert goals["call_refusals"].target == 8.0
    assert goals["call_refusals"].lower_is_better


@pytest.mark.parametrize("values", [{"adh": 0}, {"adh": -5}, {"adh": "lots"}, {"aht": 300}])
def test_bad_goal_edit_is_rejected_whole(values):
    goals = GoalSet(DEFAULT_GOALS)
    with pytest.raises(ValueError):
        goals.update({"qa_score": 95, **values}, MANAGER)
    assert goals["qa_score"].target == 92


# ---------------------------------------------------------------------------
# DevelopmentGoal
# ---------------------------------------------------------------------------


def test_development_goal_defaults():
    goal = DevelopmentGoal("Shadow top performer", "Two sessions a week", "2024-06-30")
    assert goal.target_date == date(2024, 6, 30)
    assert goal.status == "pending"
    assert goal.progress == 0
    assert len(goal.id) == 9


def test_development_goal_validation():
    with pytest.raises(ValueError):
        DevelopmentGoal("  ", "", date(2024, 6, 30))
    with pytest.raises(ValueError):
        DevelopmentGoal("Title", "", date(2024, 6, 30), priority="urgent")


def test_set_progress_clamps_and_starts_goal():
    goal = DevelopmentGoal("Title", "", date(2024, 6, 30))
    goal.set_progress(0)
    assert goal.status == "pending"
    goal.set_progress(140)
    assert goal.progress == 100
    assert goal.status == "in-progress"
    goal.set_progress(-3)
    assert goal.progress == 0
    assert goal.status == "in-progress"


# ---------------------------------------------------------------------------
# AppState
# ---------------------------------------------------------------------------


def test_commit_latest_load():
    state = AppState()
    token = state.next_generation()
    fact = build_fact_performance([make_record()])
    assert state.commit(token, fact)
    assert len(state.performance_data) == 1


def test_stale_load_is_discarded():
    state = AppState()
    slow = state.next_generation()
    fast = state.next_generation()
    newer = build_fact_performance([make_record(), make_record(month="2024-02")])

    assert state.commit(fast, newer)
    assert not state.commit(slow, pd.DataFrame())
    assert len(state.performance_data) == 2


def test_find_goal():
    state = AppState()
    goal = DevelopmentGoal("Title", "", date(2024, 6, 30))
    state.development_goals.append(goal)
    assert state.find_goal(goal.id) is goal
    with pytest.raises(KeyError):
        state.find_goal("missing")
