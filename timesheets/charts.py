from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

BILLABLE_COLOR = "#42be65"
NON_BILLABLE_COLOR = "#78a9ff"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Vega-Lite dict for the overview payload; works for layered charts too."""
    return chart.to_dict()


def billable_area_chart(weekly: pd.DataFrame) -> alt.Chart:
    """Stacked area of billable vs non-billable hours; expects iso_week/category/hours columns."""
    return (
        alt.Chart(weekly)
        .mark_area()
        .encode(
            x=alt.X("iso_week:O", title="ISO Week"),
            y=alt.Y("hours:Q", title="Hours", stack=True),
            color=alt.Color(
                "category:N",
                title="",
                scale=alt.Scale(domain=["Billable", "Non-billable"], range=[BILLABLE_COLOR, NON_BILLABLE_COLOR]),
            ),
            tooltip=["iso_week", "category", alt.Tooltip("hours:Q", format=".1f")],
        )
    )


def top_companies_chart(companies: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(companies)
        .mark_bar()
        .encode(
            x=alt.X("hours:Q", title="Hours"),
            y=alt.Y("Company:N", sort="-x", title="Company"),
            color=alt.condition(alt.datum.is_internal, alt.value(NON_BILLABLE_COLOR), alt.value(BILLABLE_COLOR)),
            tooltip=["Company", alt.Tooltip("hours:Q", format=".1f")],
        )
    )


def role_utilisation_chart(roles: pd.DataFrame) -> alt.Chart:
    bars = (
        alt.Chart(roles)
        .mark_bar()
        .encode(
            x=alt.X("Role:N", title="Role"),
            y=alt.Y("utilisation:Q", title="Utilisation", axis=alt.Axis(format=".0%")),
            tooltip=["Role", alt.Tooltip("utilisation:Q", format=".1%"), alt.Tooltip("target:Q", format=".0%")],
        )
    )
    targets = alt.Chart(roles).mark_tick(color="#ff8389", thickness=2, size=30).encode(x="Role:N", y="target:Q")
    return bars + targets


def client_pareto_chart(pareto: pd.DataFrame) -> alt.LayerChart:
    """Billable hours per client with the cumulative share line and an 80% rule."""
    base = alt.Chart(pareto).encode(x=alt.X("Company:N", sort=None, title="Client"))
    bars = base.mark_bar(color=BILLABLE_COLOR).encode(
        y=alt.Y("hours:Q", title="Billable hours"),
        tooltip=["rank", "Company", alt.Tooltip("hours:Q", format=".2f"), alt.Tooltip("cumulative_pct:Q", format=".1f")],
    )
    line = base.mark_line(point=True, color="#ff832b").encode(
        y=alt.Y("cumulative_pct:Q", title="Cumulative %", scale=alt.Scale(domain=[0, 100]))
    )
    rule = alt.Chart(pd.DataFrame({"cumulative_pct": [80]})).mark_rule(strokeDash=[4, 4], color="#ff832b").encode(
        y="cumulative_pct:Q"
    )
    return alt.layer(bars, line + rule).resolve_scale(y="independent")


def client_mix_chart(mix: pd.DataFrame, category: str, *, normalize: bool = False) -> alt.Chart:
    """Horizontal stacked bars of hours per client split by ``category``."""
    stack = "normalize" if normalize else "zero"
    return (
        alt.Chart(mix)
        .mark_bar()
        .encode(
            y=alt.Y("Company:N", sort=alt.EncodingSortField(field="client_hours", order="descending"), title="Client"),
            x=alt.X("hours:Q", stack=stack, title="Share of hours" if normalize else "Hours"),
            color=alt.Color(f"{category}:N", title=""),
            tooltip=["Company", category, alt.Tooltip("hours:Q", format=".2f"), alt.Tooltip("share:Q", format=".1f")],
        )
    )


def internal_clients_chart(internal: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(internal)
        .mark_bar(color=NON_BILLABLE_COLOR)
        .encode(
            x=alt.X("hours:Q", title="Internal hours"),
            y=alt.Y("Company:N", sort="-x", title=""),
            tooltip=["Company", alt.Tooltip("hours:Q", format=".2f")],
        )
    )


def top_projects_chart(projects: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(projects)
        .mark_bar(color=BILLABLE_COLOR)
        .encode(
            x=alt.X("hours:Q", title="Hours"),
            y=alt.Y("project:N", sort="-x", title="Project / Ticket"),
            tooltip=["project", "company", "project_manager", "engineers", alt.Tooltip("hours:Q", format=".2f")],
        )
    )


def project_type_trend_chart(monthly: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(monthly)
        .mark_line(point=True)
        .encode(
            x=alt.X("calendar_month:O", title="Month"),
            y=alt.Y("hours:Q", title="Hours"),
            color=alt.Color("Project Type:N", title=""),
            tooltip=["calendar_month", "Project Type", alt.Tooltip("hours:Q", format=".2f")],
        )
    )


def daily_hours_boxplot(stats: pd.DataFrame) -> alt.LayerChart:
    """Box plot drawn from precomputed five-number summaries per member."""
    base = alt.Chart(stats).encode(y=alt.Y("member:N", sort=None, title=""))
    whisker = base.mark_rule().encode(x=alt.X("min:Q", title="Hours per day"), x2="max:Q")
    box = base.mark_bar(size=14, color=NON_BILLABLE_COLOR).encode(
        x="q1:Q",
        x2="q3:Q",
        tooltip=["member", "count", "min", "q1", "median", "q3", "max"],
    )
    median = base.mark_tick(color="#161616", thickness=2, size=14).encode(x="median:Q")
    return whisker + box + median


def admin_trend_chart(admin: pd.DataFrame) -> alt.Chart:
    long_df = admin.melt(
        id_vars="calendar_month",
        value_vars=["admin_meeting_hours", "admin_hours", "training_hours", "bank_holiday_leave_hours", "sick_leave_hours"],
        var_name="category",
        value_name="hours",
    )
    return (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("calendar_month:O", title="Month"),
            y=alt.Y("hours:Q", stack="zero", title="Hours"),
            color=alt.Color("category:N", title=""),
            tooltip=["calendar_month", "category", alt.Tooltip("hours:Q", format=".2f")],
        )
    )
