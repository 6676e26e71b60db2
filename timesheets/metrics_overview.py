from __future__ import annotations

from typing import Any, Dict, List, Mapping

import pandas as pd

from timesheets.charts import billable_area_chart, role_utilisation_chart, to_vega_spec, top_companies_chart
from timesheets.filters import FilterState, filters_to_dict
from timesheets.mapping import ROLE_TARGETS


def _share(part: float, whole: float) -> float:
    return float(part / whole) if whole else 0.0


def role_utilisation(rows: pd.DataFrame, targets: Mapping[str, float] = ROLE_TARGETS) -> pd.DataFrame:
    """Billable hours / worked hours per role, alongside the role's target."""
    cols = ["Role", "billable_hours", "worked_hours", "utilisation", "target"]
    if rows.empty:
        return pd.DataFrame(columns=cols)
    df = rows.assign(billable_hours=rows["Hours"].where(rows["is_billable"], 0.0))
    out = (
        df.groupby("Role")
        .agg(billable_hours=("billable_hours", "sum"), worked_hours=("Hours", "sum"))
        .reset_index()
    )
    out["utilisation"] = [_share(b, w) for b, w in zip(out["billable_hours"], out["worked_hours"])]
    out["target"] = out["Role"].map(targets)
    return out[cols]


def weekly_billable_split(rows: pd.DataFrame) -> pd.DataFrame:
    if rows.empty:
        return pd.DataFrame(columns=["iso_week", "category", "hours"])
    df = rows.assign(category=rows["is_billable"].map({True: "Billable", False: "Non-billable"}))
    return df.groupby(["iso_week", "category"])["Hours"].sum().reset_index().rename(columns={"Hours": "hours"})


def top_companies(rows: pd.DataFrame, top_n: int = 10) -> pd.DataFrame:
    if rows.empty:
        return pd.DataFrame(columns=["Company", "hours", "is_internal"])
    out = (
        rows.groupby("Company")
        .agg(hours=("Hours", "sum"), is_internal=("is_internal", "any"))
        .reset_index()
        .sort_values(["hours", "Company"], ascending=[False, True])
    )
    return out.head(top_n)


def compute_kpis(rows: pd.DataFrame) -> Dict[str, float]:
    if rows.empty:
        kpis = {"dept_utilisation": 0.0, "billable_hours": 0.0, "total_hours": 0.0, "internal_hours_share": 0.0}
        kpis.update({f"{role.lower().replace(' ', '_')}_utilisation": 0.0 for role in ROLE_TARGETS})
        return kpis

    total_hours = float(rows["Hours"].sum())
    billable_hours = float(rows.loc[rows["is_billable"].astype(bool), "Hours"].sum())
    internal_hours = float(rows.loc[rows["is_internal"].astype(bool), "Hours"].sum())
    by_role = role_utilisation(rows).set_index("Role")["utilisation"]
    kpis = {
        "dept_utilisation": _share(billable_hours, total_hours),
        "billable_hours": billable_hours,
        "total_hours": total_hours,
        "internal_hours_share": _share(internal_hours, total_hours),
    }
    for role in ROLE_TARGETS:
        kpis[f"{role.lower().replace(' ', '_')}_utilisation"] = float(by_role.get(role, 0.0))
    return kpis


def compute_overview(filters: FilterState, ctx: Dict[str, Any], *, top_n: int = 10) -> Dict[str, Any]:
    rows: pd.DataFrame = ctx.get("filtered_rows", pd.DataFrame())
    overtime: pd.DataFrame = ctx.get("overtime", pd.DataFrame())

    roles = role_utilisation(rows)
    charts: Dict[str, Any] = {}
    if not rows.empty:
        charts = {
            "billable_trend": to_vega_spec(billable_area_chart(weekly_billable_split(rows))),
            "top_companies": to_vega_spec(top_companies_chart(top_companies(rows, top_n))),
            "role_utilisation": to_vega_spec(role_utilisation_chart(roles)),
        }

    overtime_top: List[Dict[str, Any]] = []
    if not overtime.empty:
        overtime_top = (
            overtime[overtime["total"] > 0]
            .sort_values(["total", "member"], ascending=[False, True])
            .head(top_n)
            .to_dict(orient="records")
        )

    return {
        "filters": filters_to_dict(filters),
        "row_count": int(len(rows)),
        "kpis": compute_kpis(rows),
        "role_utilisation": roles.to_dict(orient="records"),
        "overtime_top": overtime_top,
        "charts": charts,
    }
