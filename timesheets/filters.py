from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Union

import pandas as pd

from timesheets.dates import parse_iso_date, parse_uk_date, quarter_from_month
from timesheets.periods import PeriodDefaults


logger = logging.getLogger(__name__)

ALL = "ALL"

PERIOD_OPTIONS = ["Month", "Quarter", "FY", "Custom"]
PRODUCTIVITY_OPTIONS = ["All", "Productive", "Unproductive"]

FILTER_DEFAULTS: Dict[str, Any] = {
    "period": "Month",
    "month": None,
    "quarter": None,
    "fy": None,
    "fromDate": None,
    "toDate": None,
    "roles": ["Cloud", "Network", "PM"],
    "members": ALL,
    "companies": ALL,
    "projectTypes": ALL,
    "workTypesBoard": [
        "Tech Delivery",
        "PM Delivery",
        "Internal Admin",
        "Leave/Bank Holiday",
        "Sick Leave",
        "Training",
        "Other",
    ],
    "productivity": "All",
}

# FilterState attribute -> (persisted key, whether the "ALL" sentinel is used)
SELECTION_FIELDS = {
    "roles": ("roles", False),
    "members": ("members", True),
    "companies": ("companies", True),
    "project_types": ("projectTypes", True),
    "work_types_board": ("workTypesBoard", False),
}


@dataclass(frozen=True)
class Selection:
    """One filter dimension: unconstrained (values is None) or a selected set."""

    values: Optional[FrozenSet[str]] = None

    @classmethod
    def unconstrained(cls) -> "Selection":
        return cls()

    @classmethod
    def of(cls, values: Iterable[object]) -> "Selection":
        picked = frozenset(str(v) for v in values if v is not None)
        return cls(picked) if picked else cls()

    @property
    def is_unconstrained(self) -> bool:
        return self.values is None

    def mask(self, series: pd.Series) -> pd.Series:
        if self.values is None:
            return pd.Series(True, index=series.index)
        return series.isin(self.values)

    def to_raw(self, *, sentinel: bool) -> Union[str, List[str]]:
        if self.values is None:
            return ALL if sentinel else []
        return sorted(self.values)


@dataclass(frozen=True)
class FilterState:
    period: Optional[str] = "Month"
    month: Optional[str] = None
    quarter: Optional[str] = None
    fy: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    roles: Selection = field(default_factory=Selection)
    members: Selection = field(default_factory=Selection)
    companies: Selection = field(default_factory=Selection)
    project_types: Selection = field(default_factory=Selection)
    work_types_board: Selection = field(default_factory=Selection)
    productivity: str = "All"


def _as_selection(value: object) -> Selection:
    if isinstance(value, (list, tuple, set, frozenset)):
        return Selection.of(v for v in value if isinstance(v, str))
    # "ALL", missing keys and anything unexpected all mean unconstrained.
    return Selection.unconstrained()


def _as_optional_str(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def normalize_filters(raw: Optional[Dict[str, Any]]) -> FilterState:
    """Build a FilterState from the persisted/UI dict shape.

    Accepts the camelCase keys used by the stored blob. Unknown or malformed
    values fail open: the dimension becomes unconstrained.
    """
    raw = raw or {}
    period = raw.get("period")
    if period not in PERIOD_OPTIONS:
        period = None
    productivity = raw.get("productivity")
    if productivity not in PRODUCTIVITY_OPTIONS:
        productivity = "All"

    selections = {attr: _as_selection(raw.get(key)) for attr, (key, _) in SELECTION_FIELDS.items()}
    return FilterState(
        period=period,
        month=_as_optional_str(raw.get("month")),
        quarter=_as_optional_str(raw.get("quarter")),
        fy=_as_optional_str(raw.get("fy")),
        from_date=parse_iso_date(raw.get("fromDate")),
        to_date=parse_iso_date(raw.get("toDate")),
        productivity=productivity,
        **selections,
    )


def filters_to_dict(filters: FilterState) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "period": filters.period,
        "month": filters.month,
        "quarter": filters.quarter,
        "fy": filters.fy,
        "fromDate": filters.from_date.isoformat() if filters.from_date else None,
        "toDate": filters.to_date.isoformat() if filters.to_date else None,
        "productivity": filters.productivity,
    }
    for attr, (key, sentinel) in SELECTION_FIELDS.items():
        out[key] = getattr(filters, attr).to_raw(sentinel=sentinel)
    return out


def default_filters(period_defaults: Optional[PeriodDefaults] = None) -> FilterState:
    base = normalize_filters(FILTER_DEFAULTS)
    if period_defaults is None:
        return base
    return replace(base, month=period_defaults.month, quarter=period_defaults.quarter, fy=period_defaults.fy)


def _custom_range_mask(raw_dates: pd.Series, start: Optional[date], end: Optional[date]) -> pd.Series:
    def _in_range(value: object) -> bool:
        parsed = parse_uk_date(value)
        if parsed is None:
            return False
        if start is not None and parsed < start:
            return False
        if end is not None and parsed > end:
            return False
        return True

    return raw_dates.map(_in_range).astype(bool)


def period_mask(rows: pd.DataFrame, filters: FilterState) -> pd.Series:
    passthrough = pd.Series(True, index=rows.index)
    if filters.period == "Month":
        if not filters.month:
            return passthrough
        return rows["calendar_month"].eq(filters.month)
    if filters.period == "Quarter":
        if not filters.quarter:
            return passthrough
        return rows["calendar_month"].map(quarter_from_month).eq(filters.quarter)
    if filters.period == "FY":
        if not filters.fy:
            return passthrough
        return rows["fiscal_year"].eq(filters.fy)
    if filters.period == "Custom":
        if filters.from_date is None and filters.to_date is None:
            return passthrough
        return _custom_range_mask(rows["Date"], filters.from_date, filters.to_date)
    return passthrough


def productivity_mask(rows: pd.DataFrame, productivity: str) -> pd.Series:
    billable = rows["is_billable"].astype(bool)
    if productivity == "Productive":
        return billable
    if productivity == "Unproductive":
        return ~billable
    return pd.Series(True, index=rows.index)


def apply_filters(rows: pd.DataFrame, filters: Union[FilterState, Dict[str, Any], None]) -> pd.DataFrame:
    """Return the rows that pass every active filter dimension.

    The input frame is left untouched and surviving rows keep their order.
    """
    filt = filters if isinstance(filters, FilterState) else normalize_filters(filters)
    if rows.empty:
        return rows.copy()

    mask = period_mask(rows, filt)
    mask &= filt.roles.mask(rows["Role"])
    mask &= filt.members.mask(rows["Member"])
    mask &= filt.companies.mask(rows["Company"])
    mask &= filt.project_types.mask(rows["Project Type"])
    mask &= filt.work_types_board.mask(rows["board_work_type"])
    mask &= productivity_mask(rows, filt.productivity)

    filtered = rows[mask.astype(bool)].copy()
    logger.debug("apply_filters: %s of %s rows kept", len(filtered), len(rows))
    return filtered
