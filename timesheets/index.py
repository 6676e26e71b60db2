from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

import pandas as pd

from timesheets.dates import quarter_from_month


@dataclass(frozen=True)
class DistinctValueIndex:
    roles: List[str] = field(default_factory=list)
    members: List[str] = field(default_factory=list)
    companies: List[str] = field(default_factory=list)
    project_types: List[str] = field(default_factory=list)
    work_types_board: List[str] = field(default_factory=list)
    calendar_months: List[str] = field(default_factory=list)
    quarters: List[str] = field(default_factory=list)
    fiscal_years: List[str] = field(default_factory=list)


def _sorted_unique(values: Iterable[object]) -> List[str]:
    return sorted({str(v) for v in values if isinstance(v, str) and v})


def distinct_column(df: pd.DataFrame, col: str) -> List[str]:
    if df.empty or col not in df.columns:
        return []
    return _sorted_unique(df[col].dropna().unique())


def get_distinct_values(rows: pd.DataFrame) -> DistinctValueIndex:
    """Option lists for the filter controls, rebuilt from the full dataset."""
    calendar_months = distinct_column(rows, "calendar_month")
    return DistinctValueIndex(
        roles=distinct_column(rows, "Role"),
        members=distinct_column(rows, "Member"),
        companies=distinct_column(rows, "Company"),
        project_types=distinct_column(rows, "Project Type"),
        work_types_board=distinct_column(rows, "board_work_type"),
        calendar_months=calendar_months,
        quarters=_sorted_unique(quarter_from_month(m) for m in calendar_months),
        fiscal_years=distinct_column(rows, "fiscal_year"),
    )
