import pytest

from performance_dashboard.config import ROLE_MANAGER, DashboardConfig, UserState


def make_record(**overrides):
    record = {
        "ic_name": "John Smith",
        "month": "2024-01",
        "adh": 88.0,
        "weighted_sph": 104.0,
        "email_sph": 2.3,
        "phone_sph": 3.8,
        "chat_sph": 3.1,
        "tnps": 60.0,
        "qa_score": 94.0,
        "call_refusals": 4,
    }
    record.update(overrides)
    return record


@pytest.fixture
def record():
    return make_record()


@pytest.fixture
def config():
    cfg = DashboardConfig()
    cfg.features.use_synthetic_data = True
    cfg.features.real_time_sync = False
    cfg.current_user = UserState(name="John Smith", selected_month="2024-01")
    return cfg


@pytest.fixture
def manager_config(config):
    config.current_user.role = ROLE_MANAGER
    return config


@pytest.fixture
def live_config(config):
    config.features.use_synthetic_data = False
    config.endpoints["spreadsheet"]["url"] = "https://sheets.example.com/exec"
    return config
