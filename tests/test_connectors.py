"""Tests for data source connectors."""

from unittest.mock import MagicMock

import pytest
import requests

from performance_dashboard.connectors import (
    CONNECTOR_REGISTRY,
    BIServerConnector,
    CRMConnector,
    ConnectionResult,
    SpreadsheetConnector,
    build_connectors,
    connect_all,
)

from conftest import make_record


def _session(payload=None, exc=None):
    session = MagicMock(spec=requests.Session)
    if exc is not None:
        session.get.side_effect = exc
        return session
    response = MagicMock()
    response.status_code = 200
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    session.get.return_value = response
    return session


# ---------------------------------------------------------------------------
# Spreadsheet
# ---------------------------------------------------------------------------


def test_synthetic_mode_never_touches_network(config):
    session = _session()
    connector = SpreadsheetConnector(config, session=session)

    assert connector.connect().connected
    result = connector.fetch({"agent": "Mike Chen"})

    session.get.assert_not_called()
    assert result.synthetic and result.ok
    assert {r["ic_name"] for r in result.records} == {"Mike Chen"}


def test_placeholder_url_forces_synthetic(config):
    config.features.use_synthetic_data = False
    connector = SpreadsheetConnector(config, session=_session())
    assert connector.synthetic_mode


def test_live_fetch_normalises_and_filters(live_config):
    payload = [
        {"IC Name": "John Smith", "Month": "2024-01", "ADH": 90},
        {"IC Name": "Mike Chen", "Month": "2024-01", "ADH": 70},
    ]
    connector = SpreadsheetConnector(live_config, session=_session(payload))
    assert connector.connect().status == "connected"

    result = connector.fetch({"agent": "Mike Chen"})

    assert not result.synthetic
    assert result.records == [{"ic_name": "Mike Chen", "month": "2024-01", "adh": 70}]


def test_live_fetch_without_agent_returns_everything(live_config):
    payload = [make_record(), make_record(ic_name="Mike Chen")]
    connector = SpreadsheetConnector(live_config, session=_session(payload))
    connector.connect()
    assert len(connector.fetch().records) == 2


def test_connect_failure_reports_disconnected(live_config):
    connector = SpreadsheetConnector(
        live_config, session=_session(exc=requests.ConnectionError("no route"))
    )
    result = connector.connect()
    assert not result.connected
    assert result.status == "disconnected"
    assert "no route" in result.message


def test_connect_checks_headers_without_reading_body(live_config):
    session = _session([make_record()])
    connector = SpreadsheetConnector(live_config, session=session)

    connector.connect()

    _, kwargs = session.get.call_args
    assert kwargs["stream"] is True
    response = session.get.return_value
    response.close.assert_called_once_with()
    response.json.assert_not_called()


def test_fetch_failure_degrades_to_synthetic(live_config):
    session = _session(payload={"error": "Exception: sheet not found"})
    connector = SpreadsheetConnector(live_config, session=session)
    connector.connect()

    result = connector.fetch()

    assert result.synthetic
    assert result.error == "Exception: sheet not found"
    assert result.records


def test_fetch_before_connect_degrades(live_config):
    result = SpreadsheetConnector(live_config, session=_session([])).fetch()
    assert result.synthetic
    assert "not connected" in result.error


# ---------------------------------------------------------------------------
# Placeholders
# ---------------------------------------------------------------------------


def test_placeholder_connector_needs_endpoint(config):
    config.endpoints["bi_server"] = {}
    connector = BIServerConnector(config)
    assert not connector.connect().connected
    assert connector.fetch().error == "bi_server is not connected"


def test_placeholder_connector_serves_synthetic(config):
    config.endpoints["crm"] = {"instance_url": "https://crm.example.com"}
    connector = CRMConnector(config)
    assert connector.connect().connected
    result = connector.fetch({"months": 2})
    assert result.synthetic
    assert len(result.records) == 2 * len(config.agents)


# ---------------------------------------------------------------------------
# Registry and concurrent connect
# ---------------------------------------------------------------------------


def test_build_connectors_defaults_to_registry(config):
    assert list(build_connectors(config)) == list(CONNECTOR_REGISTRY)


def test_build_connectors_unknown_source(config):
    with pytest.raises(ValueError, match="warehouse"):
        build_connectors(config, ["spreadsheet", "warehouse"])


class _Exploding:
    name = "exploding"

    def connect(self):
        raise RuntimeError("boom")

    def fetch(self, query=None):
        raise AssertionError("not reached")


class _Fine:
    name = "fine"

    def connect(self):
        return ConnectionResult("fine", True)

    def fetch(self, query=None):
        raise AssertionError("not reached")


def test_connect_all_waits_for_every_source():
    results = connect_all({"exploding": _Exploding(), "fine": _Fine()})
    assert results["fine"].connected
    assert not results["exploding"].connected
    assert results["exploding"].message == "boom"


def test_connect_all_empty():
    assert connect_all({}) == {}