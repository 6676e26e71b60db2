import logging
from contextlib import contextmanager
from datetime import date
from typing import Dict, Optional

import altair as alt
import pandas as pd
import streamlit as st

from timesheets.charts import (
    admin_trend_chart,
    billable_area_chart,
    client_mix_chart,
    client_pareto_chart,
    daily_hours_boxplot,
    internal_clients_chart,
    project_type_trend_chart,
    role_utilisation_chart,
    top_companies_chart,
    top_projects_chart,
)
from timesheets.data import format_hours, load_dashboard_data, prepare_context
from timesheets.filters import PERIOD_OPTIONS, PRODUCTIVITY_OPTIONS, FilterState, filters_to_dict, normalize_filters
from timesheets.mapping import ROLE_TARGETS
from timesheets.metrics_clients import client_pareto, client_project_type_mix, client_work_type_mix, top_internal_clients
from timesheets.metrics_governance import OUTLIER_DAILY_HOURS, admin_trend, daily_hours_distribution, outlier_days
from timesheets.metrics_overview import compute_kpis, role_utilisation, top_companies, weekly_billable_split
from timesheets.metrics_projects import project_type_trend, top_projects
from timesheets.parse import EmptyUploadError
from timesheets.persistence import load_filters, reset_filters, save_filters
from timesheets.schema import MissingHeadersError
from timesheets.ui import filter_summary_chips, option_index, valid_selection

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("time_analytics")

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: FilterState) -> str:
    return "".join(f"<span class='chip'>{txt}</span>" for txt in filter_summary_chips(filters))


def render_page_header(title: str, breadcrumb: str, filters: FilterState, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.drop(columns=["date_obj"], errors="ignore").to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{format_filter_summary(filters)}</div>", unsafe_allow_html=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Professional Services | Time Analytics", layout="wide")
inject_base_styles()
st.title("Professional Services | Time Analytics")
st.caption("Local processing only: the uploaded CSV never leaves this session.")

with st.sidebar:
    st.markdown("### Data")
    upload = st.file_uploader("Upload timesheet CSV", type=["csv"])

if upload is None:
    st.info("Upload a timesheet CSV to get started.")
    st.stop()

try:
    data_ctx = load_dashboard_data(upload.getvalue())
except MissingHeadersError as exc:
    st.error("The uploaded CSV is missing required columns: " + ", ".join(exc.missing_headers))
    st.stop()
except EmptyUploadError as exc:
    st.error(str(exc))
    st.stop()

rows: pd.DataFrame = data_ctx["rows"]
if rows.empty:
    st.error("No valid data found in CSV. Please check the file format and headers.")
    st.stop()

distinct = data_ctx["distinct"]
defaults: FilterState = data_ctx["default_filters"]
if st.session_state.get("_upload_name") != upload.name:
    st.session_state["_upload_name"] = upload.name
    st.session_state["filters"] = filters_to_dict(load_filters(defaults))
stored: Dict = st.session_state["filters"]

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    page = st.radio("Navigate", ["Overview", "People", "Clients", "Projects", "Governance", "Data Quality"], index=0)

    st.markdown("---")
    st.markdown("### Filters")
    period = st.radio("Period", PERIOD_OPTIONS, index=option_index(stored.get("period"), PERIOD_OPTIONS, fallback=0), horizontal=True)
    month = quarter = fy = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    if period == "Month":
        month = st.selectbox("Month", distinct.calendar_months, index=option_index(stored.get("month"), distinct.calendar_months))
    elif period == "Quarter":
        quarter = st.selectbox("Quarter", distinct.quarters, index=option_index(stored.get("quarter"), distinct.quarters))
    elif period == "FY":
        fy = st.selectbox("Fiscal year", distinct.fiscal_years, index=option_index(stored.get("fy"), distinct.fiscal_years))
    else:
        first_day, last_day = min(rows["date_obj"]), max(rows["date_obj"])
        from_date = st.date_input("From", value=first_day, min_value=first_day, max_value=last_day)
        to_date = st.date_input("To", value=last_day, min_value=first_day, max_value=last_day)

    roles = st.multiselect("Roles", distinct.roles, default=valid_selection(stored.get("roles"), distinct.roles))
    members = st.multiselect("Members (empty = all)", distinct.members, default=valid_selection(stored.get("members"), distinct.members))
    companies = st.multiselect("Companies (empty = all)", distinct.companies, default=valid_selection(stored.get("companies"), distinct.companies))
    project_types = st.multiselect(
        "Project types (empty = all)", distinct.project_types, default=valid_selection(stored.get("projectTypes"), distinct.project_types)
    )
    work_types = st.multiselect(
        "Board work types", distinct.work_types_board, default=valid_selection(stored.get("workTypesBoard"), distinct.work_types_board)
    )
    productivity = st.radio(
        "Productivity", PRODUCTIVITY_OPTIONS, index=PRODUCTIVITY_OPTIONS.index(stored.get("productivity", "All")) if stored.get("productivity") in PRODUCTIVITY_OPTIONS else 0
    )

    if st.button("Reset filters"):
        st.session_state["filters"] = filters_to_dict(reset_filters(defaults))
        st.rerun()

raw_filters = {
    "period": period,
    "month": month,
    "quarter": quarter,
    "fy": fy,
    "fromDate": from_date.isoformat() if from_date else None,
    "toDate": to_date.isoformat() if to_date else None,
    "roles": roles,
    "members": members or "ALL",
    "companies": companies or "ALL",
    "projectTypes": project_types or "ALL",
    "workTypesBoard": work_types,
    "productivity": productivity,
}
filters = normalize_filters(raw_filters)
st.session_state["filters"] = filters_to_dict(filters)
save_filters(filters)

ctx = prepare_context(filters, data_ctx)
filtered_rows: pd.DataFrame = ctx["filtered_rows"]
overtime: pd.DataFrame = ctx["overtime"]


def render_kpi_tiles(df: pd.DataFrame):
    kpis = compute_kpis(df)
    cols = st.columns(6)
    cols[0].metric("Dept utilisation", f"{kpis['dept_utilisation']:.0%}", help="Billable hours / worked hours.")
    cols[1].metric("Billable hours", format_hours(kpis["billable_hours"]))
    cols[2].metric("Internal share", f"{kpis['internal_hours_share']:.0%}", help="Hours on internal companies or Internal project types.")
    for i, role in enumerate(["Cloud", "Network", "PM"], start=3):
        util = kpis[f"{role.lower()}_utilisation"]
        target = ROLE_TARGETS[role]
        cols[i].metric(f"{role} utilisation", f"{util:.0%}", delta=f"{util - target:+.0%} vs target")


# ----- Page renderers -----

def render_overview_page():
    render_page_header("Overview", "Home / Overview", filters, export_df=filtered_rows, export_name="timesheets_filtered.csv")
    if filtered_rows.empty:
        st.info("No rows match the current filters. Try adjusting or resetting them.")
        return
    with card("KPI Tiles"):
        render_kpi_tiles(filtered_rows)
    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("Billable vs Non-billable (weekly)"):
            st.altair_chart(billable_area_chart(weekly_billable_split(filtered_rows)).properties(height=280), use_container_width=True)
    with chart_cols[1]:
        with card("Top Companies"):
            st.altair_chart(top_companies_chart(top_companies(filtered_rows)).properties(height=280), use_container_width=True)
    with card("Role Utilisation vs Target"):
        st.altair_chart(role_utilisation_chart(role_utilisation(filtered_rows)), use_container_width=True)


def render_people_page():
    render_page_header("People", "Home / People", filters, export_df=overtime, export_name="overtime.csv")
    if filtered_rows.empty:
        st.info("No rows match the current filters. Try adjusting or resetting them.")
        return
    with card("Hours by Person"):
        per_person = (
            filtered_rows.assign(category=filtered_rows["is_billable"].map({True: "Billable", False: "Non-billable"}))
            .groupby(["Member", "category"])["Hours"]
            .sum()
            .reset_index()
        )
        bar = (
            alt.Chart(per_person)
            .mark_bar()
            .encode(
                x=alt.X("Hours:Q", stack="zero"),
                y=alt.Y("Member:N", sort="-x"),
                color=alt.Color("category:N", title=""),
                tooltip=["Member", "category", alt.Tooltip("Hours:Q", format=".1f")],
            )
        )
        st.altair_chart(bar, use_container_width=True)
    with card("Weekly Overtime"):
        if overtime.empty or not (overtime["total"] > 0).any():
            st.success("No overtime recorded for the selected filters.")
        else:
            st.dataframe(overtime[overtime["total"] > 0], hide_index=True, use_container_width=True)


def render_clients_page():
    render_page_header("Clients", "Home / Clients", filters, export_df=client_work_type_mix(filtered_rows), export_name="client_work_type_mix.csv")
    if filtered_rows.empty:
        st.info("No rows match the current filters. Try adjusting or resetting them.")
        return
    with card("Client Pareto (billable hours)"):
        pareto = client_pareto(filtered_rows)
        if pareto.empty:
            st.info("No billable client hours for the selected filters.")
        else:
            st.altair_chart(client_pareto_chart(pareto).properties(height=320), use_container_width=True)
    work_type_mix = client_work_type_mix(filtered_rows)
    if not work_type_mix.empty:
        with card("Client Work Type Mix (100% stacked)"):
            st.altair_chart(client_mix_chart(work_type_mix, "board_work_type", normalize=True), use_container_width=True)
        with card("Client Project Type Mix"):
            st.altair_chart(client_mix_chart(client_project_type_mix(filtered_rows), "Project Type"), use_container_width=True)
    with card("Internal Hours by Company"):
        internal = top_internal_clients(filtered_rows)
        if internal.empty:
            st.info("No internal hours for the selected filters.")
        else:
            st.altair_chart(internal_clients_chart(internal), use_container_width=True)


def render_projects_page():
    projects = top_projects(filtered_rows)
    render_page_header("Projects", "Home / Projects", filters, export_df=projects, export_name="top_projects.csv")
    if filtered_rows.empty:
        st.info("No rows match the current filters. Try adjusting or resetting them.")
        return
    with card("Top Projects by Hours"):
        st.altair_chart(top_projects_chart(projects).properties(height=max(240, 18 * len(projects))), use_container_width=True)
        st.dataframe(projects, hide_index=True, use_container_width=True)
    monthly, summary = project_type_trend(filtered_rows)
    with card("Project Type Trends"):
        st.altair_chart(project_type_trend_chart(monthly).properties(height=300), use_container_width=True)
        st.dataframe(summary, hide_index=True, use_container_width=True)


def render_governance_page():
    outliers = outlier_days(filtered_rows)
    render_page_header("Governance", "Home / Governance", filters, export_df=outliers, export_name="outlier_days.csv")
    if filtered_rows.empty:
        st.info("No rows match the current filters. Try adjusting or resetting them.")
        return
    with card("Admin, Training and Leave by Month"):
        admin = admin_trend(filtered_rows)
        st.altair_chart(admin_trend_chart(admin).properties(height=280), use_container_width=True)
        st.dataframe(admin[["calendar_month", "total_hours", "admin_pct"]], hide_index=True)
    with card(f"Outlier Days (over {OUTLIER_DAILY_HOURS:g}h)"):
        if outliers.empty:
            st.success("No outlier days for the selected filters.")
        else:
            st.dataframe(outliers, hide_index=True, use_container_width=True)
    with card("Daily Hours Distribution"):
        st.altair_chart(daily_hours_boxplot(daily_hours_distribution(filtered_rows)), use_container_width=True)


def render_data_quality_page():
    render_page_header("Data Quality", "Home / Data Quality", filters)
    with card("Row counts"):
        st.write(
            {
                "raw_rows": int(data_ctx["total_rows"]),
                "normalized_rows": int(len(rows)),
                "filtered_rows": int(len(filtered_rows)),
                "dropped": data_ctx["dropped"],
            }
        )
    with card("Coverage"):
        st.write(
            {
                "months": distinct.calendar_months,
                "fiscal_years": distinct.fiscal_years,
                "unmapped_work_type_rows": int((rows["board_work_type"] == "Other").sum()),
            }
        )
        st.dataframe(rows.head(20).drop(columns=["date_obj"]), hide_index=True)


if page == "Overview":
    render_overview_page()
elif page == "People":
    render_people_page()
elif page == "Clients":
    render_clients_page()
elif page == "Projects":
    render_projects_page()
elif page == "Governance":
    render_governance_page()
else:
    render_data_quality_page()
