"""Weekly overtime per member and ISO week.

Per day, productive hours are compared against a daily baseline (7.5 h on
weekdays, 0 at weekends, or a member-specific compressed schedule). Leave and
training reduce the weekly capacity of 37.5 h. Three overtime components are
reported, each rounded to the nearest quarter hour:

* ``daily_weekday``: weekday productive hours above the daily baseline
* ``weekly_overflow``: weekday baseline hours above the remaining weekly capacity
* ``weekend_holiday``: every productive hour on a weekend or bank holiday
"""

from __future__ import annotations

from typing import Mapping, Tuple

import numpy as np
import pandas as pd

from timesheets.mapping import DAY_HOURS, SCHEDULE_OVERRIDES, WEEK_HOURS


BANK_HOLIDAY_WORK_TYPE = "Bank/Holiday Leave"
NON_WORKING_WORK_TYPES = ("Sick Leave", "Training")

OVERTIME_COLUMNS = ["member", "iso_week", "daily_weekday", "weekly_overflow", "weekend_holiday", "total"]


def normalize_member_name(name: object) -> str:
    """``"Bolton, Mark"`` -> ``"Mark Bolton"``."""
    if not isinstance(name, str) or not name.strip():
        return "Unknown"
    if "," in name:
        parts = [p.strip() for p in name.split(",")]
        return f"{parts[1]} {parts[0]}".strip()
    return name.strip()


def daily_baseline(
    member: str,
    dow: int,
    overrides: Mapping[str, Tuple[float, float]] = SCHEDULE_OVERRIDES,
) -> float:
    if dow >= 6:
        return 0.0
    if member in overrides:
        mon_thu, fri = overrides[member]
        return mon_thu if dow <= 4 else fri
    return DAY_HOURS


def round_to_quarter(values):
    # Half-up, matching the display rounding used for hours elsewhere.
    return np.floor(np.asarray(values, dtype=float) * 4 + 0.5) / 4


def _daily_totals(rows: pd.DataFrame) -> pd.DataFrame:
    df = rows[["Member", "Work Type", "Productivity", "Hours", "date_obj", "iso_week", "dow"]].copy()
    df["member"] = df["Member"].map(normalize_member_name)
    df = df[df["Hours"] > 0].copy()

    is_bank = df["Work Type"].eq(BANK_HOLIDAY_WORK_TYPE)
    is_non_working = is_bank | df["Work Type"].isin(NON_WORKING_WORK_TYPES)
    is_productive = ~is_non_working & df["Productivity"].eq("Productive")
    df["productive"] = np.where(is_productive, df["Hours"], 0.0)
    df["non_working"] = np.where(is_non_working, df["Hours"], 0.0)
    df["bank_holiday"] = is_bank

    return (
        df.groupby(["member", "iso_week", "date_obj"], sort=False)
        .agg(
            productive=("productive", "sum"),
            non_working=("non_working", "sum"),
            bank_holiday=("bank_holiday", "any"),
            dow=("dow", "first"),
        )
        .reset_index()
    )


def compute_weekly_overtime(rows: pd.DataFrame) -> pd.DataFrame:
    if rows.empty:
        return pd.DataFrame(columns=OVERTIME_COLUMNS)

    days = _daily_totals(rows)
    if days.empty:
        return pd.DataFrame(columns=OVERTIME_COLUMNS)

    days["baseline"] = [daily_baseline(m, int(d)) for m, d in zip(days["member"], days["dow"])]
    weekend = days["dow"] >= 6
    bank = ~weekend & days["bank_holiday"].astype(bool)
    weekday = ~weekend & ~bank

    days["weekend_holiday"] = np.where(weekend | bank, days["productive"], 0.0)
    days["capacity_reduction"] = np.where(
        bank,
        np.minimum(days["non_working"], DAY_HOURS),
        np.where(weekday, np.minimum(days["non_working"], days["baseline"]), 0.0),
    )
    days["daily_weekday"] = np.where(weekday, np.maximum(0.0, days["productive"] - days["baseline"]), 0.0)
    days["baseline_pool"] = np.where(weekday, np.minimum(days["productive"], days["baseline"]), 0.0)

    weeks = (
        days.groupby(["member", "iso_week"], sort=False)[
            ["daily_weekday", "weekend_holiday", "capacity_reduction", "baseline_pool"]
        ]
        .sum()
        .reset_index()
    )
    capacity = np.maximum(0.0, WEEK_HOURS - weeks["capacity_reduction"])
    weeks["weekly_overflow"] = np.maximum(0.0, weeks["baseline_pool"] - capacity)
    total = weeks["daily_weekday"] + weeks["weekly_overflow"] + weeks["weekend_holiday"]

    out = weeks[["member", "iso_week"]].copy()
    for col in ["daily_weekday", "weekly_overflow", "weekend_holiday"]:
        out[col] = round_to_quarter(weeks[col])
    out["total"] = round_to_quarter(total)
    return out[OVERTIME_COLUMNS]
