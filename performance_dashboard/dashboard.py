"""
Dashboard controller and dashboard-ready outputs.

DashboardController is the single entry point a Streamlit front end (or any
other renderer) calls. It sequences connectors, validator, evaluator and
advisor and returns a DashboardView of plain dicts and DataFrames suitable
for rendering cards, charts and tables.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

import numpy as np
import pandas as pd

from .coaching import CoachingAdvisor, Recommendation
from .config import DashboardConfig, UserState, load_config
from .connectors import (
    PRIMARY_SOURCE,
    STATUS_DISCONNECTED,
    Connector,
    build_connectors,
    connect_all,
)
from .kpis import evaluate_record, get_status_counts, summarise_surveys
from .simulator import generate_development_goals, generate_surveys
from .state import AppState, DevelopmentGoal, GoalSet
from .transforms import (
    build_fact_performance,
    build_trend_table,
    filter_agent,
    get_available_agents,
    select_record,
)
from .validator import DataValidator, ValidationReport

logger = logging.getLogger(__name__)


class DashboardInitError(RuntimeError):
    """Fatal failure while bringing the dashboard up."""


@dataclass
class DashboardView:
    agent: str
    month: str
    record: dict
    metrics: pd.DataFrame
    status_counts: dict[str, int]
    trend: pd.DataFrame
    recommendations: list[Recommendation] = field(default_factory=list)
    development_goals: list[DevelopmentGoal] = field(default_factory=list)
    surveys: list = field(default_factory=list)
    survey_summary: dict = field(default_factory=dict)
    source_statuses: dict[str, str] = field(default_factory=dict)
    validation: ValidationReport | None = None


class DashboardController:
    """Orchestrates one dashboard session.

    Parameters
    ----------
    config : Runtime configuration, injected at startup.
    connectors : source -> Connector. Defaults to every registered source.
    advisor : Coaching advisor. Defaults to deterministic tip selection.
    validator : Batch validator for fetched records.
    state : Session state; a fresh AppState by default.

    Raises
    ------
    DashboardInitError
        If the configured goals are invalid.
    ValueError
        If connectors lacks the primary spreadsheet source.
    """

    def __init__(
        self,
        config: DashboardConfig,
        connectors: dict[str, Connector] | None = None,
        advisor: CoachingAdvisor | None = None,
        validator: DataValidator | None = None,
        state: AppState | None = None,
    ):
        self.config = config
        self.user: UserState = config.current_user
        try:
            self.goals = GoalSet(config.goals)
        except ValueError as exc:
            logger.error("Invalid goal configuration: %s", exc)
            raise DashboardInitError(str(exc)) from exc

        self.connectors = connectors if connectors is not None else build_connectors(config)
        if PRIMARY_SOURCE not in self.connectors:
            raise ValueError(
                f"The '{PRIMARY_SOURCE}' source is required; got {sorted(self.connectors)}"
            )
        self.advisor = advisor or CoachingAdvisor()
        self.validator = validator or DataValidator()
        self.state = state or AppState()
        self.state.source_statuses = {s: STATUS_DISCONNECTED for s in self.connectors}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def initialize(self) -> DashboardView:
        """Bring the dashboard up: user, connections, data, first view.

        Raises
        ------
        DashboardInitError
            On any failure; the front end replaces the page with an error.
        """
        try:
            self.initialize_user()
            self.connect_data_sources()
            self.load_data()
            view = self.build_view()
        except Exception as exc:
            logger.exception("Dashboard initialization failed")
            raise DashboardInitError(str(exc)) from exc

        logger.info("Dashboard loaded for %s (%s)", self.user.name, self.user.role)
        return view

    def initialize_user(self) -> UserState:
        """Fill in user defaults; the first configured agent stands in for a login."""
        if not self.user.name and self.config.agents:
            self.user.name = self.config.agents[0]
        if not self.user.selected_ic:
            self.user.selected_ic = self.user.name
        if not self.user.selected_month:
            self.user.selected_month = date.today().strftime("%Y-%m")
        logger.info("Initializing user: %s", self.user)
        return self.user

    def connect_data_sources(self) -> dict[str, str]:
        results = connect_all(self.connectors)
        for source, result in results.items():
            self.state.source_statuses[source] = result.status
            if not result.connected:
                logger.warning("%s disconnected: %s", source, result.message)
        return dict(self.state.source_statuses)

    def load_data(self) -> bool:
        """Fetch, validate and store the performance batch.

        Returns False when a newer load started while this one was running;
        its results are discarded.
        """
        token = self.state.next_generation()
        connector = self.connectors[PRIMARY_SOURCE]

        result = connector.fetch({"agent": None})
        if result.error:
            self.state.source_statuses[PRIMARY_SOURCE] = STATUS_DISCONNECTED
            logger.warning("Using synthetic data: %s", result.error)

        validation = self.validator.validate(result.records, PRIMARY_SOURCE)
        fact = build_fact_performance(result.records)
        committed = self.state.commit(token, fact, validation)

        if committed:
            if not self.state.development_goals:
                self.state.development_goals = generate_development_goals()
            self.reload_surveys()
        return committed

    def reload_surveys(self) -> None:
        self.state.surveys = generate_surveys()

    def refresh(self) -> bool:
        """Re-run the data pipeline; connections are left as they are."""
        logger.info("Refreshing dashboard data")
        return self.load_data()

    def sync_all_sources(self) -> bool:
        """Reconnect every source, then refresh."""
        self.connect_data_sources()
        return self.refresh()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def available_agents(self) -> list[str]:
        return get_available_agents(self.state.performance_data) or list(self.config.agents)

    def available_months(self, n: int = 12, today: date | None = None) -> list[str]:
        """The last n months, newest first, for the month selector."""
        end = pd.Period(today or date.today(), freq="M")
        return [str(end - i) for i in range(n)]

    def build_view(self, agent: str | None = None, month: str | None = None) -> DashboardView:
        """Evaluate the selected agent/month and assemble everything to render.

        Falls back to the agent's latest month when the requested month has
        no record.
        """
        agent = agent or self.user.selected_ic or self.user.name
        month = month or self.user.selected_month
        self.user.selected_ic = agent
        self.user.selected_month = month

        fact = self.state.performance_data
        record, previous = select_record(fact, agent, month)
        metrics = evaluate_record(record, self.goals.targets(), previous)

        recommendations = []
        if self.config.features.coaching_enabled:
            recommendations = self.advisor.recommend(metrics, filter_agent(fact, agent))

        return DashboardView(
            agent=agent,
            month=record.get("month", month),
            record=record,
            metrics=metrics,
            status_counts=get_status_counts(metrics),
            trend=build_trend_table(fact, agent),
            recommendations=recommendations,
            development_goals=list(self.state.development_goals),
            surveys=list(self.state.surveys),
            survey_summary=summarise_surveys(self.state.surveys),
            source_statuses=dict(self.state.source_statuses),
            validation=self.state.validation,
        )

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def update_goals(self, values: dict[str, float]) -> dict[str, float]:
        """Manager-only goal edit; raises PermissionError or ValueError."""
        targets = self.goals.update(values, self.user)
        self.config.goals.update(targets)
        return targets

    def add_development_goal(
        self,
        title: str,
        description: str,
        target_date: date | str,
        priority: str = "medium",
    ) -> DevelopmentGoal:
        goal = DevelopmentGoal(
            title=title,
            description=description,
            target_date=target_date,
            priority=priority,
        )
        self.state.development_goals.append(goal)
        logger.info("Development goal added: %s", goal.title)
        return goal

    def update_goal_progress(self, goal_id: str, progress: float) -> DevelopmentGoal:
        goal = self.state.find_goal(goal_id)
        goal.set_progress(progress)
        return goal


def build_controller(config: DashboardConfig, seed: int | None = None) -> DashboardController:
    """Controller with default collaborators; seed makes coaching tips random but repeatable."""
    advisor = CoachingAdvisor(rng=np.random.default_rng(seed)) if seed is not None else CoachingAdvisor()
    return DashboardController(config, advisor=advisor)


def open_dashboard(
    config_path: str | None = None,
    seed: int | None = None,
) -> tuple[DashboardController, DashboardView]:
    """Load configuration, build the controller and initialize it.

    Every startup failure (config file, environment values, goals,
    connectors, first load) surfaces as DashboardInitError, so the front end
    has a single error page to show.
    """
    try:
        config = load_config(config_path)
        controller = build_controller(config, seed)
    except DashboardInitError:
        raise
    except Exception as exc:
        logger.exception("Dashboard configuration failed")
        raise DashboardInitError(str(exc)) from exc
    return controller, controller.initialize()
