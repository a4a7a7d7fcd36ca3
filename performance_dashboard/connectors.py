"""
Data source connectors.

Every source implements the same capability: connect() -> ConnectionResult
and fetch(query) -> FetchResult. Sources are looked up in CONNECTOR_REGISTRY
rather than subclassed from a common base.

Only the spreadsheet export is a live HTTP source. The BI server, query
service and CRM connectors are placeholders: they report connected when their
endpoint is configured and serve synthetic records.

To add a real source:
    Implement a class with `name`, `connect()` and `fetch(query)` returning
    the result types below, then add it to CONNECTOR_REGISTRY.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Protocol

import requests

from .config import DashboardConfig, is_placeholder
from .loaders.spreadsheet import records_from_payload
from .simulator import generate_performance_records

logger = logging.getLogger(__name__)

STATUS_CONNECTED = "connected"
STATUS_DISCONNECTED = "disconnected"


@dataclass
class ConnectionResult:
    source: str
    connected: bool
    message: str = ""

    @property
    def status(self) -> str:
        return STATUS_CONNECTED if self.connected else STATUS_DISCONNECTED


@dataclass
class FetchResult:
    """Records from one source.

    records are flat dicts with normalised keys. error is set when the source
    failed; synthetic is True when the records are generated rather than
    fetched (by configuration or as a fallback).
    """

    source: str
    records: list[dict] = field(default_factory=list)
    error: str | None = None
    synthetic: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class Connector(Protocol):
    name: str

    def connect(self) -> ConnectionResult: ...

    def fetch(self, query: dict | None = None) -> FetchResult: ...


def _synthetic(source: str, config: DashboardConfig, query: dict | None, error: str | None = None) -> FetchResult:
    query = query or {}
    agents = [query["agent"]] if query.get("agent") else config.agents
    records = generate_performance_records(agents=agents, n_months=query.get("months", 6))
    return FetchResult(source=source, records=records, error=error, synthetic=True)


class SpreadsheetConnector:
    """Spreadsheet export endpoint (Apps Script web app returning JSON)."""

    name = "spreadsheet"

    def __init__(self, config: DashboardConfig, session: requests.Session | None = None):
        self.config = config
        self.url = config.spreadsheet_url
        self.timeout = config.http_timeout
        self.session = session or requests.Session()
        self.is_connected = False

    @property
    def synthetic_mode(self) -> bool:
        return self.config.features.use_synthetic_data or is_placeholder(self.url)

    def connect(self) -> ConnectionResult:
        if self.synthetic_mode:
            self.is_connected = True
            return ConnectionResult(self.name, True, "synthetic data")

        # headers only; fetch() downloads the body
        try:
            response = self.session.get(self.url, timeout=self.timeout, stream=True)
            try:
                response.raise_for_status()
            finally:
                response.close()
        except requests.RequestException as exc:
            self.is_connected = False
            logger.error("Failed to connect to %s: %s", self.name, exc)
            return ConnectionResult(self.name, False, str(exc))

        self.is_connected = True
        return ConnectionResult(self.name, True, f"HTTP {response.status_code}")

    def _get_records(self) -> list[dict]:
        response = self.session.get(
            self.url,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return records_from_payload(response.json())

    def fetch(self, query: dict | None = None) -> FetchResult:
        """Fetch export rows; any failure degrades to synthetic data.

        query keys: agent (filter by ic_name), months (synthetic only).
        """
        if self.synthetic_mode:
            return _synthetic(self.name, self.config, query)

        if not self.is_connected:
            logger.warning("%s is not connected; using synthetic data", self.name)
            return _synthetic(self.name, self.config, query, error=f"{self.name} is not connected")

        try:
            records = self._get_records()
        except (requests.RequestException, ValueError) as exc:
            logger.exception("Spreadsheet fetch failed; using synthetic data")
            return _synthetic(self.name, self.config, query, error=str(exc))

        agent = (query or {}).get("agent")
        if agent and any(r.get("ic_name") for r in records):
            records = [r for r in records if r.get("ic_name") == agent]

        logger.info("Fetched %d records from %s", len(records), self.name)
        return FetchResult(source=self.name, records=records)


class _PlaceholderConnector:
    """Shared behaviour for sources without a real implementation yet."""

    name = ""
    endpoint_key = ""
    required_setting = ""

    def __init__(self, config: DashboardConfig):
        self.config = config
        self.endpoint = config.endpoints.get(self.endpoint_key, {})
        self.is_connected = False

    def connect(self) -> ConnectionResult:
        if not self.endpoint.get(self.required_setting):
            self.is_connected = False
            return ConnectionResult(self.name, False, f"{self.required_setting} not configured")
        self.is_connected = True
        return ConnectionResult(self.name, True, "placeholder connector")

    def fetch(self, query: dict | None = None) -> FetchResult:
        if not self.is_connected:
            return FetchResult(source=self.name, error=f"{self.name} is not connected")
        return _synthetic(self.name, self.config, query)


class BIServerConnector(_PlaceholderConnector):
    """BI server (Tableau REST API)."""

    name = "bi_server"
    endpoint_key = "bi_server"
    required_setting = "server"


class QueryServiceConnector(_PlaceholderConnector):
    """Saved-query service (Redash)."""

    name = "query_service"
    endpoint_key = "query_service"
    required_setting = "base_url"


class CRMConnector(_PlaceholderConnector):
    """CRM (Salesforce REST API)."""

    name = "crm"
    endpoint_key = "crm"
    required_setting = "instance_url"


CONNECTOR_REGISTRY: dict[str, type] = {
    SpreadsheetConnector.name: SpreadsheetConnector,
    BIServerConnector.name: BIServerConnector,
    QueryServiceConnector.name: QueryServiceConnector,
    CRMConnector.name: CRMConnector,
}

PRIMARY_SOURCE = SpreadsheetConnector.name


def build_connectors(config: DashboardConfig, sources: list[str] | None = None) -> dict[str, Connector]:
    """Instantiate the registered connectors (all of them by default)."""
    sources = sources or list(CONNECTOR_REGISTRY)
    connectors = {}
    for source in sources:
        if source not in CONNECTOR_REGISTRY:
            raise ValueError(f"Unknown data source '{source}'")
        connectors[source] = CONNECTOR_REGISTRY[source](config)
    return connectors


def connect_all(
    connectors: dict[str, Connector],
    max_workers: int = 4,
) -> dict[str, ConnectionResult]:
    """Connect every source concurrently and wait for all of them.

    A connector that raises is reported as disconnected; it never prevents
    the others from connecting.
    """
    results: dict[str, ConnectionResult] = {}
    if not connectors:
        return results

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(connector.connect): source
            for source, connector in connectors.items()
        }
        for future in as_completed(futures):
            source = futures[future]
            try:
                results[source] = future.result()
            except Exception as exc:
                logger.warning("Failed to connect to %s: %s", source, exc)
                results[source] = ConnectionResult(source, False, str(exc))

    connected = sum(r.connected for r in results.values())
    logger.info("Connected %d of %d data sources", connected, len(results))
    return results
