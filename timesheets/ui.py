from __future__ import annotations

from typing import List, Optional, Sequence

from timesheets.filters import FilterState, Selection


def option_index(value: Optional[str], options: Sequence[str], fallback: int = -1) -> int:
    """Position of ``value`` in ``options``; ``fallback`` (default: the last option) when absent."""
    if value in options:
        return list(options).index(value)
    if not options:
        return 0
    return len(options) - 1 if fallback < 0 else min(fallback, len(options) - 1)


def valid_selection(selected: object, options: Sequence[str]) -> List[str]:
    if not isinstance(selected, list):
        return []
    return [v for v in selected if v in options]


def _selection_chip(label: str, selection: Selection) -> str:
    if selection.is_unconstrained:
        return f"{label}: All"
    return f"{label}: {len(selection.values)} selected"


def filter_summary_chips(filters: FilterState) -> List[str]:
    if filters.period == "Custom":
        start = filters.from_date.isoformat() if filters.from_date else "..."
        end = filters.to_date.isoformat() if filters.to_date else "..."
        period_chip = f"Custom: {start} to {end}"
    elif filters.period is None:
        period_chip = "Period: All"
    else:
        value = {"Month": filters.month, "Quarter": filters.quarter, "FY": filters.fy}.get(filters.period)
        period_chip = f"{filters.period}: {value or 'All'}"

    return [
        period_chip,
        _selection_chip("Roles", filters.roles),
        _selection_chip("Members", filters.members),
        _selection_chip("Companies", filters.companies),
        _selection_chip("Project types", filters.project_types),
        _selection_chip("Work types", filters.work_types_board),
        f"Productivity: {filters.productivity}",
    ]
