"""Governance views: admin and leave share per month, outlier days, and the
spread of daily hours per member."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import numpy as np
import pandas as pd

from timesheets.charts import admin_trend_chart, daily_hours_boxplot, to_vega_spec
from timesheets.filters import FilterState, filters_to_dict
from timesheets.overtime import round_to_quarter


OUTLIER_DAILY_HOURS = 12.0

# Work Type -> admin trend column
ADMIN_WORK_TYPES = {
    "Admin - Internal Meeting": "admin_meeting_hours",
    "Admin": "admin_hours",
    "Training": "training_hours",
    "Bank/Holiday Leave": "bank_holiday_leave_hours",
    "Sick Leave": "sick_leave_hours",
    "Sick": "sick_leave_hours",
}
ADMIN_COLUMNS = [
    "admin_meeting_hours",
    "admin_hours",
    "training_hours",
    "bank_holiday_leave_hours",
    "sick_leave_hours",
]
OUTLIER_COLUMNS = ["member", "date", "hours", "project", "company", "entry_count"]
BOXPLOT_COLUMNS = ["member", "min", "q1", "median", "q3", "max", "count"]


def admin_trend(rows: pd.DataFrame) -> pd.DataFrame:
    """Per calendar month: hours in each admin/leave category, total hours and the admin share (%)."""
    cols = ["calendar_month"] + ADMIN_COLUMNS + ["total_hours", "admin_pct"]
    if rows.empty:
        return pd.DataFrame(columns=cols)

    df = rows[["calendar_month", "Work Type", "Hours"]].copy()
    category = df["Work Type"].map(ADMIN_WORK_TYPES)
    for col in ADMIN_COLUMNS:
        df[col] = np.where(category.eq(col), df["Hours"], 0.0)
    monthly = df.groupby("calendar_month")[ADMIN_COLUMNS + ["Hours"]].sum().reset_index()
    monthly = monthly.rename(columns={"Hours": "total_hours"})

    admin_share = monthly[ADMIN_COLUMNS].sum(axis=1) / monthly["total_hours"] * 100
    monthly["admin_pct"] = np.floor(admin_share * 10 + 0.5) / 10
    for col in ADMIN_COLUMNS + ["total_hours"]:
        monthly[col] = round_to_quarter(monthly[col])
    return monthly[cols]


def outlier_days(rows: pd.DataFrame, threshold: float = OUTLIER_DAILY_HOURS) -> pd.DataFrame:
    """Member-days above ``threshold`` hours, most recent first, with the day's largest entry."""
    if rows.empty:
        return pd.DataFrame(columns=OUTLIER_COLUMNS)

    df = rows[["Member", "date_obj", "Hours", "Project/Ticket", "Company"]].reset_index(drop=True)
    groups = df.groupby(["Member", "date_obj"], sort=False)
    days = groups.agg(hours=("Hours", "sum"), entry_count=("Hours", "size")).reset_index()
    dominant = df.loc[groups["Hours"].idxmax()]
    days["project"] = dominant["Project/Ticket"].to_numpy()
    days["company"] = dominant["Company"].to_numpy()

    out = days[days["hours"] > threshold].sort_values("date_obj", ascending=False, kind="stable")
    out = out.rename(columns={"Member": "member"})
    out["date"] = [d.strftime("%d/%m/%Y") for d in out["date_obj"]]
    out["hours"] = round_to_quarter(out["hours"])
    return out[OUTLIER_COLUMNS].reset_index(drop=True)


def five_number_summary(values: Iterable[float]) -> Optional[Dict[str, float]]:
    """Min, quartiles, median and max, each rounded to a quarter hour.

    Quartiles are read at ``n // 4`` and ``3n // 4`` of the sorted values and
    averaged with the previous value when ``n`` is a multiple of four.
    """
    ordered = sorted(float(v) for v in values)
    n = len(ordered)
    if n == 0:
        return None

    def _between(i: int) -> float:
        return (ordered[i - 1] + ordered[i]) / 2

    median = _between(n // 2) if n % 2 == 0 else ordered[n // 2]
    q1 = _between(n // 4) if n % 4 == 0 else ordered[n // 4]
    q3 = _between(3 * n // 4) if n % 4 == 0 else ordered[3 * n // 4]
    stats = {"min": ordered[0], "q1": q1, "median": median, "q3": q3, "max": ordered[-1]}
    out: Dict[str, float] = {k: float(round_to_quarter(v)) for k, v in stats.items()}
    out["count"] = n
    return out


def daily_hours_distribution(rows: pd.DataFrame, top_n: int = 15) -> pd.DataFrame:
    if rows.empty:
        return pd.DataFrame(columns=BOXPLOT_COLUMNS)

    daily = rows.groupby(["Member", "date_obj"], sort=False)["Hours"].sum().reset_index()
    records = []
    for member, g in daily.groupby("Member", sort=False):
        records.append({"member": member, **five_number_summary(g["Hours"])})
    out = pd.DataFrame(records)
    out = out.sort_values("median", ascending=False, kind="stable").head(top_n)
    return out[BOXPLOT_COLUMNS].reset_index(drop=True)


def compute_governance(
    filters: FilterState,
    ctx: Dict[str, Any],
    *,
    threshold: float = OUTLIER_DAILY_HOURS,
    top_n: int = 15,
) -> Dict[str, Any]:
    rows: pd.DataFrame = ctx.get("filtered_rows", pd.DataFrame())
    overtime: pd.DataFrame = ctx.get("overtime", pd.DataFrame())
    if rows.empty:
        return {"filters": filters_to_dict(filters), "admin_trend": [], "outliers": [], "daily_hours": [], "overtime_weeks": 0, "charts": {}}

    admin = admin_trend(rows)
    outliers = outlier_days(rows, threshold)
    distribution = daily_hours_distribution(rows, top_n)
    overtime_weeks = 0 if overtime.empty else int((overtime["total"] > 0).sum())
    return {
        "filters": filters_to_dict(filters),
        "admin_trend": admin.to_dict(orient="records"),
        "outliers": outliers.to_dict(orient="records"),
        "daily_hours": distribution.to_dict(orient="records"),
        "overtime_weeks": overtime_weeks,
        "charts": {
            "admin_trend": to_vega_spec(admin_trend_chart(admin)),
            "daily_hours": to_vega_spec(daily_hours_boxplot(distribution)),
        },
    }
