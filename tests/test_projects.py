from __future__ import annotations

import pytest

from tests.conftest import make_rows
from timesheets.data import load_dashboard_data, prepare_context
from timesheets.metrics_projects import compute_projects, project_team_role, project_type_trend, top_projects
from timesheets.parse import empty_rows_frame


@pytest.mark.parametrize(
    "work_role, role, expected",
    [
        ("Senior Project Manager", "Cloud", "pm"),
        ("Engineer", "PM", "pm"),
        ("Project Engineer", "Team Lead", "engineer"),
        ("Engineer", "Network", "engineer"),
        ("Lead", "Team Lead", None),
    ],
)
def test_project_team_role(work_role, role, expected):
    assert project_team_role(work_role, role) == expected


def test_top_projects(rows):
    projects = top_projects(rows)
    assert projects["project"].tolist() == ["P1", "P5", "P6", "P3", "P4", "P2", "Unknown"]
    p1 = projects.iloc[0]
    assert p1["hours"] == pytest.approx(16.5)
    assert p1["company"] == "Acme"
    assert p1["project_manager"] == "Carol"
    assert p1["engineers"] == "Alice"
    p5 = projects.iloc[1]
    assert p5["project_manager"] == "Not assigned"
    assert p5["engineers"] == "Dan"


def test_top_projects_orders_names_by_hours():
    rows = make_rows(
        [
            {"Member": "Smith, Ann", "Hours": "2"},
            {"Member": "Bolton, Mark", "Hours": "5"},
        ]
    )
    assert top_projects(rows).iloc[0]["engineers"] == "Mark Bolton, Ann Smith"


def test_project_type_trend(rows):
    monthly, summary = project_type_trend(rows, top_n=3)
    assert summary["project_type"].tolist() == ["Install", "Managed Service", "Support"]
    install = summary.iloc[0]
    assert install["total_hours"] == pytest.approx(32.0)
    assert install["avg_monthly_hours"] == pytest.approx(8.0)
    assert install["trend"] == pytest.approx(3.0)
    assert summary.iloc[1]["trend"] == pytest.approx(-6.0)

    assert len(monthly) == 12
    by_month = monthly[monthly["Project Type"] == "Install"].set_index("calendar_month")["hours"]
    assert by_month.to_dict() == pytest.approx({"2024-01": 7.5, "2024-02": 6.0, "2024-03": 8.0, "2024-04": 10.5})


def test_empty_rows():
    monthly, summary = project_type_trend(empty_rows_frame())
    assert monthly.empty and summary.empty
    assert top_projects(empty_rows_frame()).empty


def test_compute_projects_payload(sample_csv):
    ctx = prepare_context({"period": "FY", "fy": "FY24"}, load_dashboard_data(sample_csv))
    payload = compute_projects(ctx["filters"], ctx)
    assert set(payload["charts"]) == {"top_projects", "project_type_trend"}
    assert payload["top_projects"][0]["project"] == "P5"
