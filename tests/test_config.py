"""Tests for configuration loading."""

import json
from unittest.mock import MagicMock

import pytest

from performance_dashboard.config import (
    DEFAULT_GOALS,
    DashboardConfig,
    config_from_mapping,
    is_placeholder,
    load_config,
)

ENV_VARS = (
    "DASHBOARD_SPREADSHEET_URL",
    "DASHBOARD_USE_SYNTHETIC_DATA",
    "DASHBOARD_USER_NAME",
    "DASHBOARD_USER_ROLE",
    "DASHBOARD_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def dotenv(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep any developer .env out of the tests
    loader = MagicMock()
    monkeypatch.setattr("performance_dashboard.config.load_dotenv", loader)
    return loader


def test_defaults():
    config = DashboardConfig()
    assert config.goals == DEFAULT_GOALS
    assert config.features.use_synthetic_data
    assert is_placeholder(config.spreadsheet_url)
    assert config.refresh_intervals["metrics"] == 300000
    assert not config.current_user.is_manager


def test_defaults_are_not_shared():
    first, second = DashboardConfig(), DashboardConfig()
    first.goals["adh"] = 1
    first.endpoints["spreadsheet"]["url"] = "https://changed"
    assert second.goals["adh"] == 85
    assert is_placeholder(second.spreadsheet_url)


def test_web_style_mapping():
    config = config_from_mapping({
        "endpoints": {"googleSheets": "https://sheets.example.com/exec"},
        "goals": {"qa_score": "95", "aht": 300},
        "features": {"useMockData": False, "aiCoaching": False},
        "refreshIntervals": {"metrics": 60000},
        "currentUser": {"name": "Dana Lee", "role": "Manager", "selectedIC": "Mike Chen"},
        "charts": {"colors": {}},
        "theme": "dark",
    })

    assert config.spreadsheet_url == "https://sheets.example.com/exec"
    assert config.goals["qa_score"] == 95.0
    assert "aht" not in config.goals
    assert not config.features.use_synthetic_data
    assert not config.features.coaching_enabled
    assert config.refresh_intervals["metrics"] == 60000
    assert config.current_user.is_manager
    assert config.current_user.selected_ic == "Mike Chen"


def test_partial_endpoint_keeps_other_settings():
    config = config_from_mapping({"endpoints": {"tableau": {"siteId": "ops"}}})
    assert config.endpoints["bi_server"]["site_id"] == "ops"
    assert config.endpoints["bi_server"]["api_version"] == "3.19"


@pytest.mark.parametrize("target", [0, -5, "lots", None])
def test_invalid_goal_target_rejected(target):
    with pytest.raises(ValueError, match="adh"):
        config_from_mapping({"goals": {"adh": target}})


@pytest.mark.parametrize("value", ["", None, "YOUR_KEY", "https://your-instance.salesforce.com"])
def test_is_placeholder(value):
    assert is_placeholder(value)


def test_load_config_from_file(tmp_path):
    path = tmp_path / "dashboard.json"
    path.write_text(json.dumps({"agents": ["A", "B"], "goals": {"adh": 90}}), encoding="utf-8")
    config = load_config(path)
    assert config.agents == ["A", "B"]
    assert config.goals["adh"] == 90.0


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.json")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DASHBOARD_SPREADSHEET_URL", "https://sheets.example.com/live")
    monkeypatch.setenv("DASHBOARD_USE_SYNTHETIC_DATA", "false")
    monkeypatch.setenv("DASHBOARD_USER_NAME", "Mike Chen")
    monkeypatch.setenv("DASHBOARD_USER_ROLE", "Manager")
    monkeypatch.setenv("DASHBOARD_HTTP_TIMEOUT", "5")

    config = load_config()

    assert config.spreadsheet_url == "https://sheets.example.com/live"
    assert not config.features.use_synthetic_data
    assert config.current_user.name == "Mike Chen"
    assert config.current_user.is_manager
    assert config.http_timeout == 5.0


def test_load_config_reads_dotenv(dotenv):
    load_config()
    dotenv.assert_called_once_with()


def test_non_numeric_timeout_rejected(monkeypatch):
    monkeypatch.setenv("DASHBOARD_HTTP_TIMEOUT", "abc")
    with pytest.raises(ValueError, match="DASHBOARD_HTTP_TIMEOUT"):
        load_config()
