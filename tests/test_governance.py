from __future__ import annotations

import pytest

from tests.conftest import make_rows
from timesheets.data import load_dashboard_data, prepare_context
from timesheets.metrics_governance import (
    admin_trend,
    compute_governance,
    daily_hours_distribution,
    five_number_summary,
    outlier_days,
)
from timesheets.parse import empty_rows_frame


def test_admin_trend(rows):
    admin = admin_trend(rows).set_index("calendar_month")
    assert list(admin.index) == ["2024-01", "2024-02", "2024-03", "2024-04"]
    assert admin.loc["2024-01", "admin_hours"] == pytest.approx(1.0)
    assert admin.loc["2024-01", "total_hours"] == pytest.approx(14.5)
    assert admin.loc["2024-01", "admin_pct"] == pytest.approx(6.9)
    assert admin.loc["2024-04", "training_hours"] == pytest.approx(7.5)
    assert admin.loc["2024-04", "admin_pct"] == pytest.approx(39.5)
    assert admin.loc["2024-02", "admin_pct"] == pytest.approx(0.0)


def test_outlier_days():
    rows = make_rows(
        [
            {"Member": "Alice", "Date": "08/01/2024", "Hours": "7", "Project/Ticket": "P1"},
            {"Member": "Alice", "Date": "08/01/2024", "Hours": "6", "Project/Ticket": "P2", "Company": "Beta"},
            {"Member": "Bob", "Date": "09/01/2024", "Hours": "12"},
            {"Member": "Alice", "Date": "10/01/2024", "Hours": "12.5", "Project/Ticket": "P3"},
        ]
    )
    out = outlier_days(rows)
    assert out["date"].tolist() == ["10/01/2024", "08/01/2024"]
    day = out.iloc[1]
    assert day["member"] == "Alice"
    assert day["hours"] == pytest.approx(13.0)
    assert day["project"] == "P1"
    assert day["company"] == "Acme"
    assert day["entry_count"] == 2


def test_no_outliers_in_sample(rows):
    assert outlier_days(rows).empty


def test_five_number_summary():
    assert five_number_summary([8, 2, 6, 4]) == {"min": 2.0, "q1": 3.0, "median": 5.0, "q3": 7.0, "max": 8.0, "count": 4}
    assert five_number_summary([3, 1, 2]) == {"min": 1.0, "q1": 1.0, "median": 2.0, "q3": 3.0, "max": 3.0, "count": 3}
    assert five_number_summary([]) is None


def test_daily_hours_distribution_sums_days_first():
    rows = make_rows(
        [
            {"Member": "Alice", "Date": "08/01/2024", "Hours": "4"},
            {"Member": "Alice", "Date": "08/01/2024", "Hours": "4"},
            {"Member": "Alice", "Date": "09/01/2024", "Hours": "6"},
            {"Member": "Bob", "Date": "08/01/2024", "Hours": "9"},
        ]
    )
    dist = daily_hours_distribution(rows).set_index("member")
    assert list(dist.index) == ["Bob", "Alice"]
    assert dist.loc["Alice", "count"] == 2
    assert dist.loc["Alice", "median"] == pytest.approx(7.0)
    assert dist.loc["Alice", "max"] == pytest.approx(8.0)


def test_empty_rows():
    empty = empty_rows_frame()
    assert admin_trend(empty).empty
    assert outlier_days(empty).empty
    assert daily_hours_distribution(empty).empty


def test_compute_governance_payload(sample_csv):
    ctx = prepare_context({}, load_dashboard_data(sample_csv))
    payload = compute_governance(ctx["filters"], ctx)
    assert payload["overtime_weeks"] == 2
    assert payload["outliers"] == []
    assert set(payload["charts"]) == {"admin_trend", "daily_hours"}
    assert len(payload["admin_trend"]) == 4
