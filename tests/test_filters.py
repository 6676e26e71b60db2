from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from timesheets.filters import (
    ALL,
    FILTER_DEFAULTS,
    FilterState,
    Selection,
    apply_filters,
    default_filters,
    filters_to_dict,
    normalize_filters,
)
from timesheets.index import get_distinct_values
from timesheets.periods import PeriodDefaults


def _kept(rows: pd.DataFrame, raw) -> list:
    return list(apply_filters(rows, raw).index)


def test_roles_and_productivity_compose(rows):
    assert _kept(rows, {"roles": ["Cloud"], "productivity": "Productive"}) == [0, 6]


def test_custom_range_is_inclusive(rows):
    raw = {"period": "Custom", "fromDate": "2024-01-10", "toDate": "2024-01-20"}
    assert _kept(rows, raw) == [0, 2]


def test_custom_range_open_ended(rows):
    assert _kept(rows, {"period": "Custom", "toDate": "2024-01-09"}) == [1]
    assert _kept(rows, {"period": "Custom", "fromDate": "2024-04-12"}) == [10, 11]


def test_custom_range_without_bounds_is_passthrough(rows):
    assert len(apply_filters(rows, {"period": "Custom"})) == len(rows)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"period": "Month", "month": "2024-04"}, [7, 8, 9, 10, 11]),
        ({"period": "Month", "month": "2023-12"}, []),
        ({"period": "Quarter", "quarter": "2024-Q1"}, [0, 1, 2, 3, 4, 5, 6]),
        ({"period": "FY", "fy": "FY24"}, [7, 8, 9, 10, 11]),
        ({"period": "FY", "fy": "FY23"}, [0, 1, 2, 3, 4, 5, 6]),
    ],
)
def test_period_selectors(rows, raw, expected):
    assert _kept(rows, raw) == expected


def test_period_without_value_is_passthrough(rows):
    assert len(apply_filters(rows, {"period": "Quarter"})) == len(rows)


def test_all_sentinel_matches_full_list(rows):
    companies = get_distinct_values(rows).companies
    via_sentinel = apply_filters(rows, {"companies": ALL})
    via_list = apply_filters(rows, {"companies": companies})
    pd.testing.assert_frame_equal(via_sentinel, via_list)


def test_empty_list_is_unconstrained(rows):
    for key in ["roles", "members", "companies", "projectTypes", "workTypesBoard"]:
        assert len(apply_filters(rows, {key: []})) == len(rows)


def test_selection_lists(rows):
    assert _kept(rows, {"workTypesBoard": ["PM Delivery"]}) == [2, 4, 9, 10]
    assert _kept(rows, {"members": ["Erin", "Nobody"]}) == [8, 9]
    assert _kept(rows, {"projectTypes": ["Unknown"]}) == [11]
    assert _kept(rows, {"productivity": "Unproductive"}) == [1, 3, 5, 7, 8, 11]


def test_default_filters_on_sample(rows):
    assert _kept(rows, default_filters()) == [0, 1, 2, 4, 6, 7, 9, 11]


def test_apply_filters_is_idempotent(rows):
    filters = normalize_filters({"roles": ["Cloud", "Network"], "period": "FY", "fy": "FY24"})
    once = apply_filters(rows, filters)
    twice = apply_filters(once, filters)
    pd.testing.assert_frame_equal(once, twice)


def test_apply_filters_leaves_input_untouched(rows):
    before = rows.copy()
    out = apply_filters(rows, {"roles": ["PM"]})
    out["Hours"] = 0.0
    pd.testing.assert_frame_equal(rows, before)


def test_apply_filters_on_empty_rows():
    empty = pd.DataFrame(columns=["Role", "Hours"])
    assert apply_filters(empty, {"roles": ["Cloud"]}).empty


def test_none_filters_keep_everything(rows):
    assert len(apply_filters(rows, None)) == len(rows)


def test_unknown_values_fail_open(rows):
    filters = normalize_filters({"period": "Week", "productivity": "Maybe", "roles": "Cloud"})
    assert filters.period is None
    assert filters.productivity == "All"
    assert filters.roles.is_unconstrained
    assert len(apply_filters(rows, filters)) == len(rows)


def test_normalize_filters_parses_dates():
    filters = normalize_filters({"period": "Custom", "fromDate": "2024-01-10", "toDate": "not a date"})
    assert filters.from_date == date(2024, 1, 10)
    assert filters.to_date is None


def test_defaults_round_trip_through_dict():
    defaults = default_filters(PeriodDefaults(month="2024-04", quarter="2024-Q2", fy="FY24"))
    assert normalize_filters(filters_to_dict(defaults)) == defaults


def test_filters_to_dict_shape():
    raw = filters_to_dict(default_filters())
    assert raw["members"] == ALL
    assert raw["roles"] == sorted(FILTER_DEFAULTS["roles"])
    assert raw["workTypesBoard"] == sorted(FILTER_DEFAULTS["workTypesBoard"])
    assert raw["fromDate"] is None


def test_selection_helpers():
    assert Selection.of([]).is_unconstrained
    assert Selection.of(["b", "a"]).to_raw(sentinel=True) == ["a", "b"]
    assert Selection.unconstrained().to_raw(sentinel=True) == ALL
    assert Selection.unconstrained().to_raw(sentinel=False) == []
    assert FilterState().roles == Selection.unconstrained()
