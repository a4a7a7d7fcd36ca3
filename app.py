"""
Agent Performance Dashboard: interactive Streamlit front end

Run with:  streamlit run app.py
"""

import logging

import streamlit as st
import plotly.graph_objects as go
import pandas as pd

from performance_dashboard.coaching import classify_survey_score, get_survey_actions
from performance_dashboard.config import METRIC_REGISTRY, DashboardConfig
from performance_dashboard.dashboard import DashboardController, DashboardInitError, open_dashboard
from performance_dashboard.scheduler import RefreshScheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Performance Management Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

STATUS_COLORS = {
    "success": "#28a745",
    "warning": "#ffc107",
    "danger": "#dc3545",
    "unknown": "#95a5a6",
}

PRIORITY_COLORS = {
    "high": "#dc3545",
    "medium": "#ffc107",
    "low": "#28a745",
}


# ---------------------------------------------------------------------------
# Session setup
# ---------------------------------------------------------------------------
@st.cache_resource
def get_scheduler(_config: DashboardConfig) -> RefreshScheduler:
    """One refresh thread per server process, shared by every session."""
    scheduler = RefreshScheduler(_config)
    scheduler.start()
    return scheduler


def get_controller() -> DashboardController:
    if "controller" not in st.session_state:
        controller, _ = open_dashboard()
        get_scheduler(controller.config).attach(controller)
        st.session_state["controller"] = controller
    return st.session_state["controller"]


try:
    controller = get_controller()
except DashboardInitError as exc:
    st.title("Dashboard Error")
    st.error("There was an error initializing the dashboard.")
    st.markdown(f"**Error:** {exc}")
    st.caption("Please check the logs for more details.")
    if st.button("Reload Page"):
        st.session_state.clear()
        st.rerun()
    st.stop()

config = controller.config
user = controller.user

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("Performance Dashboard")
st.sidebar.markdown(f"**{user.name}** · {user.role}")
st.sidebar.divider()

agents = controller.available_agents()
selected_agent = st.sidebar.selectbox(
    "Select IC",
    agents,
    index=agents.index(user.selected_ic) if user.selected_ic in agents else 0,
)

months = controller.available_months()
selected_month = st.sidebar.selectbox(
    "Select Month",
    months,
    index=months.index(user.selected_month) if user.selected_month in months else 0,
    format_func=lambda m: pd.Timestamp(f"{m}-01").strftime("%B %Y"),
)

col_a, col_b = st.sidebar.columns(2)
if col_a.button("Refresh Data"):
    controller.refresh()
    st.toast("Data refreshed successfully!")
if col_b.button("Sync All Sources"):
    controller.sync_all_sources()
    st.toast("All data sources synced!")

page = st.sidebar.radio(
    "Navigate",
    ["Performance", "Coaching", "Development Goals", "tNPS Surveys", "Data Sources"],
)

if config.features.manager_mode and user.is_manager:
    with st.sidebar.expander("Edit Goals"):
        with st.form("goals-form"):
            edited = {
                metric: st.number_input(
                    info["name"],
                    value=float(config.goals[metric]),
                    min_value=0.0,
                    step=0.1,
                )
                for metric, info in METRIC_REGISTRY.items()
            }
            if st.form_submit_button("Save Goals"):
                try:
                    controller.update_goals(edited)
                    st.toast("Goals updated successfully!")
                except (PermissionError, ValueError) as exc:
                    st.error(str(exc))

view = controller.build_view(selected_agent, selected_month)


# ---------------------------------------------------------------------------
# Helper: metric card
# ---------------------------------------------------------------------------
def metric_card(row):
    color = STATUS_COLORS.get(row["status"], STATUS_COLORS["unknown"])
    current = row["current"]
    current_str = f"{current:,.1f}{row['unit']}" if pd.notna(current) else "--"
    comparator = "<" if row["lower_is_better"] else ">"
    change = row["change_pct"]
    arrow = "▲" if change >= 0 else "▼"

    st.markdown(
        f"""
        <div style="background: linear-gradient(135deg, {color}22, {color}11);
                    border-left: 4px solid {color};
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">
                {row['name']} &nbsp;<span style="color: {color};">{row['status'].capitalize()}</span>
            </div>
            <div style="font-size: 28px; font-weight: 700; color: #222; margin: 4px 0;">{current_str}</div>
            <div style="font-size: 13px; color: #666;">
                Goal: {comparator}{row['goal']:g}{row['unit']} &nbsp;|&nbsp;
                <span style="color: {color}; font-weight: 600;">{arrow} {abs(change):.1f}% vs last month</span>
            </div>
            <div style="background: #eee; border-radius: 4px; height: 6px; margin-top: 8px;">
                <div style="background: {color}; width: {row['progress']:.0f}%; height: 6px; border-radius: 4px;"></div>
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )


# ===========================================================================
# PAGE: Performance
# ===========================================================================
if page == "Performance":
    st.title("Month-to-Date Performance")
    st.caption(f"IC: **{view.agent}** · Month: **{view.month}**")

    if not view.record:
        st.warning("No performance data for this IC.")

    cols = st.columns(4)
    for i, (_, row) in enumerate(view.metrics.iterrows()):
        with cols[i % 4]:
            metric_card(row)

    st.divider()

    st.subheader("Performance Trends (Last 6 Months)")
    if view.trend.empty:
        st.info("No trend data available.")
    else:
        fig = go.Figure()
        for metric, color in (("adh", "#007bff"), ("tnps", "#28a745"), ("qa_score", "#ffc107")):
            label = METRIC_REGISTRY[metric]["name"] + (" %" if METRIC_REGISTRY[metric]["unit"] == "%" else "")
            fig.add_trace(go.Scatter(
                x=view.trend["month_name"],
                y=view.trend[metric],
                name=label,
                mode="lines+markers",
                line=dict(color=color, width=2, shape="spline"),
            ))
        fig.update_layout(
            height=400,
            yaxis=dict(range=[0, 100]),
            hovermode="x unified",
            plot_bgcolor="rgba(0,0,0,0)",
            legend=dict(orientation="h", y=1.1),
        )
        st.plotly_chart(fig, use_container_width=True)

    if config.features.export_enabled and not controller.state.performance_data.empty:
        st.download_button(
            "Export Data (CSV)",
            controller.state.performance_data.to_csv(index=False),
            file_name="performance_data.csv",
            mime="text/csv",
        )


# ===========================================================================
# PAGE: Coaching
# ===========================================================================
elif page == "Coaching":
    st.title("Coaching Recommendations")

    if not config.features.coaching_enabled:
        st.info("Coaching is disabled.")
    elif not view.recommendations:
        st.success("Great job! All metrics are meeting their goals. Keep up the excellent work!")
    else:
        for rec in view.recommendations:
            color = PRIORITY_COLORS.get(rec.priority, "#95a5a6")
            actions = "".join(
                f"<span style='background:#f1f3f5; border-radius:4px; padding:2px 8px; margin-right:6px;'>{a}</span>"
                for a in rec.actions
            )
            st.markdown(
                f"<div style='border-left: 4px solid {color}; padding: 8px 12px; margin-bottom: 10px;'>"
                f"<b>{rec.name}</b> &nbsp;<span style='color:{color}; font-weight:600;'>{rec.priority.upper()}</span>"
                f"<div style='margin: 6px 0;'>{rec.recommendation}</div>"
                f"<div>{actions}</div></div>",
                unsafe_allow_html=True,
            )


# ===========================================================================
# PAGE: Development Goals
# ===========================================================================
elif page == "Development Goals":
    st.title("Development Goals")

    if not view.development_goals:
        st.info("No development goals set.")

    for goal in view.development_goals:
        color = PRIORITY_COLORS.get(goal.priority, "#95a5a6")
        with st.container(border=True):
            st.markdown(
                f"**{goal.title}** &nbsp;<span style='color:{color}; font-weight:600;'>{goal.priority.upper()}</span>",
                unsafe_allow_html=True,
            )
            st.write(goal.description)
            st.caption(f"Target: {goal.target_date:%d %b %Y} · {goal.progress:.0f}% Complete · {goal.status}")
            progress = st.slider("Progress", 0, 100, int(goal.progress), key=f"progress-{goal.id}")
            if progress != int(goal.progress):
                controller.update_goal_progress(goal.id, progress)

    st.subheader("Add Development Goal")
    with st.form("dev-goal-form", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_area("Description")
        target_date = st.date_input("Target Date")
        priority = st.selectbox("Priority", ["high", "medium", "low"], index=1)
        if st.form_submit_button("Add Goal"):
            try:
                controller.add_development_goal(title, description, target_date, priority)
                st.toast("Development goal added!")
                st.rerun()
            except ValueError as exc:
                st.error(str(exc))


# ===========================================================================
# PAGE: tNPS Surveys
# ===========================================================================
elif page == "tNPS Surveys":
    st.title("tNPS Surveys")

    summary = view.survey_summary
    st.metric("Current tNPS", f"{summary['tnps']:.0f}" if summary["tnps"] is not None else "--")

    if not view.surveys:
        st.info("No recent surveys available.")

    for survey in view.surveys:
        color = STATUS_COLORS[classify_survey_score(survey.score)]
        actions = "".join(f"<li>{a}</li>" for a in get_survey_actions(survey.score))
        st.markdown(
            f"<div style='border-left: 4px solid {color}; padding: 8px 12px; margin-bottom: 10px;'>"
            f"<span style='color:{color}; font-size: 20px; font-weight:700;'>{survey.score:g}/10</span>"
            f" &nbsp;<span style='color:#888;'>{survey.date:%d %b %Y} · {survey.customer_type}</span>"
            f"<div style='margin: 6px 0; font-style: italic;'>\"{survey.feedback}\"</div>"
            f"<b>Suggested Actions:</b><ul>{actions}</ul></div>",
            unsafe_allow_html=True,
        )


# ===========================================================================
# PAGE: Data Sources
# ===========================================================================
elif page == "Data Sources":
    st.title("Data Sources")

    cols = st.columns(len(view.source_statuses) or 1)
    for i, (source, status) in enumerate(view.source_statuses.items()):
        color = STATUS_COLORS["success"] if status == "connected" else STATUS_COLORS["danger"]
        with cols[i]:
            st.markdown(
                f"<div style='text-align:center; padding:12px; background:{color}15; "
                f"border-radius:8px; border-top:3px solid {color};'>"
                f"<div style='font-size:13px; color:#666;'>{source.replace('_', ' ').title()}</div>"
                f"<div style='font-size:18px; font-weight:700; color:{color};'>{status.capitalize()}</div></div>",
                unsafe_allow_html=True,
            )

    st.divider()
    st.subheader("Data Quality")

    report = view.validation
    if report is None:
        st.info("No data validated yet.")
    else:
        stats = report.stats
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Records", stats.total_records)
        c2.metric("Records with Issues", stats.records_with_issues)
        c3.metric("Invalid Months", stats.invalid_dates)
        c4.metric("Out of Range", stats.out_of_range_values)

        if report.valid:
            st.success("Batch accepted")
        else:
            st.warning("Batch exceeds the issue tolerance")

        for issue in report.issues:
            st.text(issue)
        if report.overflow:
            st.caption(f"... and {report.overflow} more issues")
