from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import pandas as pd

from timesheets.charts import project_type_trend_chart, to_vega_spec, top_projects_chart
from timesheets.filters import FilterState, filters_to_dict
from timesheets.overtime import normalize_member_name, round_to_quarter


TOP_PROJECT_COLUMNS = ["project", "company", "hours", "project_manager", "engineers"]
NOT_ASSIGNED = "Not assigned"


def project_team_role(work_role: object, role: object) -> Optional[str]:
    """``"pm"``, ``"engineer"`` or None, judged from the Work Role text first, then the Role."""
    work_role = str(work_role or "").lower()
    role = str(role or "").lower()
    if "project manager" in work_role or "pm" in role:
        return "pm"
    if "project engineer" in work_role or "cloud" in role or "network" in role:
        return "engineer"
    return None


def _names_by_hours(df: pd.DataFrame) -> str:
    hours = df.groupby("Member", sort=False)["Hours"].sum().sort_values(ascending=False, kind="stable")
    return ", ".join(normalize_member_name(name) for name in hours.index)


def top_projects(rows: pd.DataFrame, top_n: int = 30) -> pd.DataFrame:
    if rows.empty:
        return pd.DataFrame(columns=TOP_PROJECT_COLUMNS)

    df = rows.assign(
        project=rows["Project/Ticket"].replace("", "Unknown"),
        team_role=[project_team_role(w, r) for w, r in zip(rows["Work Role"], rows["Role"])],
    )
    out = (
        df.groupby("project", sort=False)
        .agg(company=("Company", "first"), hours=("Hours", "sum"))
        .reset_index()
    )
    for team_role, col in [("pm", "project_manager"), ("engineer", "engineers")]:
        members = df[df["team_role"] == team_role]
        names = {project: _names_by_hours(g) for project, g in members.groupby("project", sort=False)}
        out[col] = out["project"].map(names).fillna(NOT_ASSIGNED)

    out["hours"] = round_to_quarter(out["hours"])
    out = out.sort_values("hours", ascending=False, kind="stable").head(top_n)
    return out[TOP_PROJECT_COLUMNS].reset_index(drop=True)


def project_type_trend(rows: pd.DataFrame, top_n: int = 8) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Monthly hours for the ``top_n`` project types plus a per-type summary.

    Months with no hours for a type are reported as 0 so every line spans the
    same months. ``trend`` is the last month's hours minus the first month's.
    """
    monthly_cols = ["calendar_month", "Project Type", "hours"]
    summary_cols = ["project_type", "total_hours", "avg_monthly_hours", "trend"]
    if rows.empty:
        return pd.DataFrame(columns=monthly_cols), pd.DataFrame(columns=summary_cols)

    totals = rows.groupby("Project Type")["Hours"].sum().sort_values(ascending=False, kind="stable")
    top_types = list(totals.index[:top_n])
    months = sorted(rows["calendar_month"].unique())

    grid = pd.MultiIndex.from_product([months, top_types], names=["calendar_month", "Project Type"])
    monthly = (
        rows[rows["Project Type"].isin(top_types)]
        .groupby(["calendar_month", "Project Type"])["Hours"]
        .sum()
        .reindex(grid, fill_value=0.0)
        .reset_index()
        .rename(columns={"Hours": "hours"})
    )
    monthly["hours"] = round_to_quarter(monthly["hours"])

    by_month = monthly.pivot(index="calendar_month", columns="Project Type", values="hours")
    summary = pd.DataFrame(
        {
            "project_type": top_types,
            "total_hours": round_to_quarter(totals[top_types].to_numpy()),
            "avg_monthly_hours": round_to_quarter(totals[top_types].to_numpy() / len(months)),
            "trend": [
                float(by_month[t].iloc[-1] - by_month[t].iloc[0]) if len(months) > 1 else 0.0 for t in top_types
            ],
        }
    )
    return monthly[monthly_cols], summary[summary_cols]


def compute_projects(filters: FilterState, ctx: Dict[str, Any], *, top_n: int = 30) -> Dict[str, Any]:
    rows: pd.DataFrame = ctx.get("filtered_rows", pd.DataFrame())
    if rows.empty:
        return {"filters": filters_to_dict(filters), "top_projects": [], "project_type_summary": [], "charts": {}}

    projects = top_projects(rows, top_n)
    monthly, summary = project_type_trend(rows)
    return {
        "filters": filters_to_dict(filters),
        "top_projects": projects.to_dict(orient="records"),
        "project_type_summary": summary.to_dict(orient="records"),
        "charts": {
            "top_projects": to_vega_spec(top_projects_chart(projects)),
            "project_type_trend": to_vega_spec(project_type_trend_chart(monthly)),
        },
    }
