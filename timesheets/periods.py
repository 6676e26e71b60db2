from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd

from timesheets.dates import fiscal_year_from_month, quarter_from_month
from timesheets.index import distinct_column


@dataclass(frozen=True)
class PeriodDefaults:
    month: Optional[str] = None
    quarter: Optional[str] = None
    fy: Optional[str] = None


def latest_month(calendar_months: Sequence[str]) -> Optional[str]:
    # YYYY-MM sorts lexicographically in date order.
    months = [m for m in calendar_months if m]
    return max(months) if months else None


def get_latest_complete_month(rows: pd.DataFrame) -> Optional[str]:
    return latest_month(distinct_column(rows, "calendar_month"))


def derive_period_defaults(month: Optional[str]) -> PeriodDefaults:
    if not month:
        return PeriodDefaults()
    return PeriodDefaults(month=month, quarter=quarter_from_month(month), fy=fiscal_year_from_month(month))
