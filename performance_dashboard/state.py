"""
Application state: goal set, development goals, survey records, and the
per-session AppState the controller owns.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from .config import METRIC_REGISTRY, UserState, parse_goal_target
from .transforms import FACT_COLUMNS
from .validator import ValidationReport

logger = logging.getLogger(__name__)

PRIORITIES = ("high", "medium", "low")

GOAL_PENDING = "pending"
GOAL_IN_PROGRESS = "in-progress"


def generate_id() -> str:
    return uuid.uuid4().hex[:9]


@dataclass(frozen=True)
class Goal:
    target: float
    lower_is_better: bool = False


class GoalSet:
    """Metric goals with their comparison direction.

    Directions come from the metric registry and are fixed; only targets are
    editable, and only by a manager.
    """

    def __init__(self, targets: dict[str, float]):
        self._goals: dict[str, Goal] = {}
        for metric, target in targets.items():
            self._goals[metric] = self._make_goal(metric, target)

    @staticmethod
    def _make_goal(metric: str, target) -> Goal:
        value = parse_goal_target(metric, target)
        lower = METRIC_REGISTRY[metric]["direction"] == "lower_is_better"
        return Goal(target=value, lower_is_better=lower)

    def __getitem__(self, metric: str) -> Goal:
        return self._goals[metric]

    def __contains__(self, metric: str) -> bool:
        return metric in self._goals

    def __iter__(self):
        return iter(self._goals)

    def targets(self) -> dict[str, float]:
        return {m: g.target for m, g in self._goals.items()}

    def update(self, values: dict[str, float], user: UserState) -> dict[str, float]:
        """Replace goal targets. All-or-nothing: one bad value rejects the edit.

        Raises
        ------
        PermissionError
            If the user is not a manager.
        ValueError
            For unknown metrics or non-positive / non-numeric targets.
        """
        if not user.is_manager:
            raise PermissionError(f"User '{user.name}' ({user.role}) cannot edit goals")

        staged = {metric: self._make_goal(metric, target) for metric, target in values.items()}
        self._goals.update(staged)
        logger.info("Goals updated by %s: %s", user.name, {m: g.target for m, g in staged.items()})
        return self.targets()


@dataclass
class DevelopmentGoal:
    title: str
    description: str
    target_date: date
    priority: str = "medium"
    progress: float = 0
    status: str = GOAL_PENDING
    id: str = field(default_factory=generate_id)

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("Development goal needs a title")
        if self.priority not in PRIORITIES:
            raise ValueError(f"Priority must be one of {PRIORITIES}, got '{self.priority}'")
        if isinstance(self.target_date, str):
            self.target_date = date.fromisoformat(self.target_date)

    def set_progress(self, progress: float) -> None:
        """Record externally supplied progress, clamped to 0-100.

        Any progress above zero moves a pending goal to in-progress. There is
        no completion state.
        """
        self.progress = max(0.0, min(100.0, float(progress)))
        if self.progress > 0:
            self.status = GOAL_IN_PROGRESS


@dataclass(frozen=True)
class SurveyRecord:
    date: date
    score: float
    feedback: str
    customer_type: str
    id: str = field(default_factory=generate_id)


def _empty_fact() -> pd.DataFrame:
    return pd.DataFrame(columns=FACT_COLUMNS)


@dataclass
class AppState:
    """Everything one dashboard session holds between renders."""

    performance_data: pd.DataFrame = field(default_factory=_empty_fact)
    development_goals: list[DevelopmentGoal] = field(default_factory=list)
    surveys: list[SurveyRecord] = field(default_factory=list)
    source_statuses: dict[str, str] = field(default_factory=dict)
    validation: ValidationReport | None = None
    generation: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def next_generation(self) -> int:
        """Start a new load; earlier in-flight loads become stale."""
        with self._lock:
            self.generation += 1
            return self.generation

    def commit(
        self,
        token: int,
        performance_data: pd.DataFrame,
        validation: ValidationReport | None = None,
    ) -> bool:
        """Store a load's results if its token is still the latest.

        Returns False (and keeps the current data) for stale tokens.
        """
        with self._lock:
            if token != self.generation:
                logger.info("Discarding stale load %d (current %d)", token, self.generation)
                return False
            self.performance_data = performance_data
            self.validation = validation
            return True

    def find_goal(self, goal_id: str) -> DevelopmentGoal:
        for goal in self.development_goals:
            if goal.id == goal_id:
                return goal
        raise KeyError(goal_id)
