from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

import pandas as pd

from timesheets.filters import FilterState, apply_filters, default_filters, normalize_filters
from timesheets.index import get_distinct_values
from timesheets.mapping import DEFAULT_MAPPING, MappingConfig
from timesheets.overtime import compute_weekly_overtime, round_to_quarter
from timesheets.parse import ParseResult, parse_timesheets
from timesheets.periods import derive_period_defaults, get_latest_complete_month


def round_quarter_hours(value: object) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(round_to_quarter(value))


def format_hours(value: object) -> str:
    rounded = round_quarter_hours(value)
    if rounded is None:
        return "N/A"
    return f"{rounded:g}h"


def format_tooltip_hours(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):.1f} h"


def format_percentage(value: object) -> str:
    """Percent already on a 0-100 scale, one decimal."""
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):.1f}%"


def build_dashboard_data(result: ParseResult) -> Dict[str, object]:
    rows = result.rows
    period_defaults = derive_period_defaults(get_latest_complete_month(rows))
    return {
        "rows": rows,
        "total_rows": result.total_rows,
        "dropped": dict(result.dropped),
        "distinct": get_distinct_values(rows),
        "period_defaults": period_defaults,
        "default_filters": default_filters(period_defaults),
    }


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(content: bytes) -> Dict[str, object]:
    return build_dashboard_data(parse_timesheets(content, DEFAULT_MAPPING))


def load_dashboard_data(content: bytes, config: MappingConfig = DEFAULT_MAPPING) -> Dict[str, object]:
    """Parse an uploaded CSV once and index it; repeat uploads of the same bytes hit the cache."""
    if config is not DEFAULT_MAPPING:
        return build_dashboard_data(parse_timesheets(content, config))
    return _load_dashboard_data_cached(content)


def prepare_context(filters: Dict[str, Any] | FilterState, data_ctx: Dict[str, object]) -> Dict[str, object]:
    rows: pd.DataFrame = data_ctx.get("rows", pd.DataFrame())
    filt = filters if isinstance(filters, FilterState) else normalize_filters(filters)
    filtered_rows = apply_filters(rows, filt)
    return {
        "filters": filt,
        "rows": rows,
        "filtered_rows": filtered_rows,
        "overtime": compute_weekly_overtime(filtered_rows),
        "distinct": data_ctx.get("distinct"),
    }
