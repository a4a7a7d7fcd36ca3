"""
Configuration: metric registry, default endpoints and goals, runtime config.

METRIC_REGISTRY maps each canonical metric name to its display name, unit,
evaluation direction, and the plausible value range used by the validator.

The runtime configuration is an explicit DashboardConfig value built by
load_config() at startup and passed down to the controller; nothing reads a
global mutable config object.
"""

import copy
import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Metric Registry
# ---------------------------------------------------------------------------
# direction: "higher_is_better" or "lower_is_better"
# unit: display unit string
# range: (min, max) accepted by the data validator
METRIC_REGISTRY: dict[str, dict] = {
    "adh": {
        "name": "ADH",
        "unit": "%",
        "direction": "higher_is_better",
        "range": (0, 100),
    },
    "weighted_sph": {
        "name": "Weighted SPH",
        "unit": "",
        "direction": "higher_is_better",
        "range": (0, 1000),
    },
    "email_sph": {
        "name": "Email SPH",
        "unit": "",
        "direction": "higher_is_better",
        "range": (0, 50),
    },
    "phone_sph": {
        "name": "Phone SPH",
        "unit": "",
        "direction": "higher_is_better",
        "range": (0, 50),
    },
    "chat_sph": {
        "name": "Chat SPH",
        "unit": "",
        "direction": "higher_is_better",
        "range": (0, 50),
    },
    "tnps": {
        "name": "tNPS",
        "unit": "",
        "direction": "higher_is_better",
        "range": (-100, 100),
    },
    "qa_score": {
        "name": "QA Score",
        "unit": "%",
        "direction": "higher_is_better",
        "range": (0, 100),
    },
    "call_refusals": {
        "name": "Call Refusals",
        "unit": "",
        "direction": "lower_is_better",
        "range": (0, 100),
    },
}

# Fields every performance record must carry, in export column order
REQUIRED_FIELDS: list[str] = ["ic_name", "month", *METRIC_REGISTRY]

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_GOALS: dict[str, float] = {
    "adh": 85,
    "weighted_sph": 100,
    "email_sph": 2.1,
    "phone_sph": 3.5,
    "chat_sph": 2.9,
    "tnps": 57,
    "qa_score": 92,
    "call_refusals": 10,
}

PLACEHOLDER_MARKERS = ("YOUR_", "your-")

# Vendor section names used by the web config -> source keys
ENDPOINT_ALIASES = {
    "google_sheets": "spreadsheet",
    "tableau": "bi_server",
    "redash": "query_service",
    "salesforce": "crm",
}

DEFAULT_ENDPOINTS: dict[str, dict] = {
    "spreadsheet": {
        "url": "https://script.google.com/macros/s/YOUR_GOOGLE_SCRIPT_ID/exec",
    },
    "bi_server": {
        "server": "https://your-tableau-server.com",
        "api_version": "3.19",
        "site_id": "your-site-id",
    },
    "query_service": {
        "base_url": "https://your-redash-instance.com/api",
        "api_key": "YOUR_REDASH_API_KEY_HERE",
        "query_ids": {
            "performance_metrics": 123,
            "trend_data": 124,
            "tnps_surveys": 125,
        },
    },
    "crm": {
        "instance_url": "https://your-instance.salesforce.com",
        "api_version": "v58.0",
    },
}

# Refresh intervals in milliseconds. Coaching and trends are derived from the
# metrics fetch on every render, so they have no interval of their own.
DEFAULT_REFRESH_INTERVALS: dict[str, int] = {
    "metrics": 300_000,
    "tnps": 1_800_000,
}

DEFAULT_AGENTS = ["John Smith", "Sarah Johnson", "Mike Chen", "Emma Wilson"]

ROLE_IC = "IC"
ROLE_MANAGER = "Manager"

HTTP_TIMEOUT_SECONDS = 15.0

# Share of affected records the validator tolerates before flagging a batch
VALIDATION_TOLERANCE = 0.10
MAX_REPORTED_ISSUES = 10


# ---------------------------------------------------------------------------
# Runtime configuration
# ---------------------------------------------------------------------------
@dataclass
class FeatureFlags:
    use_synthetic_data: bool = True
    coaching_enabled: bool = True
    manager_mode: bool = True
    real_time_sync: bool = True
    export_enabled: bool = True


@dataclass
class UserState:
    """The signed-in user and the current dashboard selection."""

    name: str = ""
    role: str = ROLE_IC
    selected_ic: str = ""
    selected_month: str = field(default_factory=lambda: date.today().strftime("%Y-%m"))

    @property
    def is_manager(self) -> bool:
        return self.role == ROLE_MANAGER


@dataclass
class DashboardConfig:
    endpoints: dict[str, dict] = field(default_factory=lambda: copy.deepcopy(DEFAULT_ENDPOINTS))
    goals: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_GOALS))
    features: FeatureFlags = field(default_factory=FeatureFlags)
    refresh_intervals: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_REFRESH_INTERVALS)
    )
    current_user: UserState = field(default_factory=UserState)
    agents: list[str] = field(default_factory=lambda: list(DEFAULT_AGENTS))
    http_timeout: float = HTTP_TIMEOUT_SECONDS

    @property
    def spreadsheet_url(self) -> str:
        return self.endpoints.get("spreadsheet", {}).get("url", "")


def is_placeholder(value: Any) -> bool:
    """True for empty values and the template values shipped in the defaults."""
    if not value:
        return True
    text = str(value)
    return any(marker in text for marker in PLACEHOLDER_MARKERS)


def parse_goal_target(metric: str, target: Any) -> float:
    """Coerce a goal target to float.

    Raises
    ------
    ValueError
        For unknown metrics and non-numeric or non-positive targets.
    """
    if metric not in METRIC_REGISTRY:
        raise ValueError(f"Unknown metric '{metric}'")
    try:
        value = float(target)
    except (TypeError, ValueError):
        raise ValueError(f"Goal for '{metric}' must be a number, got {target!r}") from None
    if not value > 0:
        raise ValueError(f"Goal for '{metric}' must be positive, got {value}")
    return value


def _snake(key: str) -> str:
    # config files written for the web page use camelCase keys
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", key).lower()


def _snake_keys(data: Any) -> Any:
    if isinstance(data, dict):
        return {_snake(str(k)): _snake_keys(v) for k, v in data.items()}
    return data


def _env_bool(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def config_from_mapping(data: dict) -> DashboardConfig:
    """Build a DashboardConfig from a (possibly partial) nested mapping.

    Unknown sections are ignored with a warning. Feature flag aliases from the
    web config (useMockData, aiCoaching, exportData) are accepted. Goals for
    known metrics must be positive numbers; anything else raises ValueError.
    """
    data = _snake_keys(data)
    config = DashboardConfig()

    for section, values in data.get("endpoints", {}).items():
        section = ENDPOINT_ALIASES.get(section, section)
        if isinstance(values, str):
            values = {"url": values}
        config.endpoints.setdefault(section, {}).update(values)

    for metric, target in data.get("goals", {}).items():
        if metric not in METRIC_REGISTRY:
            logger.warning("Ignoring goal for unknown metric '%s'", metric)
            continue
        config.goals[metric] = parse_goal_target(metric, target)

    aliases = {
        "use_mock_data": "use_synthetic_data",
        "ai_coaching": "coaching_enabled",
        "export_data": "export_enabled",
    }
    for flag, value in data.get("features", {}).items():
        flag = aliases.get(flag, flag)
        if not hasattr(config.features, flag):
            logger.warning("Ignoring unknown feature flag '%s'", flag)
            continue
        setattr(config.features, flag, bool(value))

    for name, interval in data.get("refresh_intervals", {}).items():
        config.refresh_intervals[name] = int(interval)

    user = data.get("current_user", {})
    for attr in ("name", "role", "selected_ic", "selected_month"):
        if user.get(attr):
            setattr(config.current_user, attr, user[attr])

    if data.get("agents"):
        config.agents = list(data["agents"])

    known = {"endpoints", "goals", "features", "refresh_intervals", "current_user", "agents", "charts"}
    for section in set(data) - known:
        logger.warning("Ignoring unknown config section '%s'", section)

    return config


def load_config(path: str | Path | None = None) -> DashboardConfig:
    """Load configuration: defaults, then an optional JSON file, then env vars."""
    load_dotenv()

    if path is not None:
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except Exception:
            logger.exception("Failed to read config file: %s", path)
            raise
        config = config_from_mapping(data)
        logger.info("Loaded dashboard config from %s", path)
    else:
        config = DashboardConfig()

    url = os.getenv("DASHBOARD_SPREADSHEET_URL")
    if url:
        config.endpoints.setdefault("spreadsheet", {})["url"] = url

    synthetic = _env_bool("DASHBOARD_USE_SYNTHETIC_DATA")
    if synthetic is not None:
        config.features.use_synthetic_data = synthetic

    if os.getenv("DASHBOARD_USER_NAME"):
        config.current_user.name = os.getenv("DASHBOARD_USER_NAME")
    if os.getenv("DASHBOARD_USER_ROLE"):
        config.current_user.role = os.getenv("DASHBOARD_USER_ROLE")

    timeout = os.getenv("DASHBOARD_HTTP_TIMEOUT")
    if timeout:
        try:
            config.http_timeout = float(timeout)
        except ValueError:
            raise ValueError(f"DASHBOARD_HTTP_TIMEOUT must be a number, got {timeout!r}") from None

    return config
