"""
Agent Performance Dashboard

Analytics backend for call-center agent metrics (adherence, per-channel
SPH, tNPS, QA score, call refusals) evaluated against configurable goals,
with canned coaching and stubbed external data connectors.

To swap the spreadsheet export for a warehouse feed:
    Add a connector to connectors.CONNECTOR_REGISTRY that returns flat
    records with the same field names (see config.REQUIRED_FIELDS). The
    validator, transforms and evaluator stay unchanged.

To connect to Streamlit/Dash:
    Build a DashboardController from config.load_config(), call initialize()
    once and build_view(agent, month) per render; the returned DashboardView
    holds plain dicts and DataFrames for cards, trend charts and tables.

To add new metrics:
    Add an entry to config.METRIC_REGISTRY (name, unit, direction, range)
    and a goal to config.DEFAULT_GOALS, then make sure the export carries a
    column of that name.
"""
