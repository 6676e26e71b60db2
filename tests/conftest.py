# Shared pytest fixtures
from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd
import pytest

from timesheets.parse import ParseResult, normalize_rows, parse_timesheets
from timesheets.schema import map_columns

HEADER = "Member,Date,Ticket,Work Role,Work Type,Company,Hours,Project/Ticket,Project Type,Role,Productivity,Status"

SAMPLE_LINES = [
    "Alice,10/01/2024,T1,Engineer,Project Installation & Engineering,Acme,7.5,P1,Install,Cloud,Productive,Approved",
    "Alice,09/01/2024,T2,Engineer,Admin,OryxAlign,1,P2,Internal Admin,Cloud,Unproductive,Approved",
    "Bob,20/01/2024,T3,Engineer,Project Management,Beta,4,P3,Managed Service,Network,Productive,Pending",
    "Bob,21/01/2024,T4,Engineer,Solutions & Scoping,Beta,2,P3,Managed Service,Network,Unproductive,Approved",
    "Carol,5/2/2024,T5,PM,Project Management,Acme,6,P1,Install,PM,Productive,Approved",
    "Carol,15/02/2024,T6,PM,Internal Support & Projects,OryxAlign-Internal c/code,3,P4,Internal Projects,PM,Unproductive,Rejected",
    "Dan,31/03/2024,T7,Engineer,Project Installation & Engineering,Gamma,8,P5,Install,Cloud,Productive,Approved",
    "Dan,01/04/2024,T8,Engineer,Training,Gamma,7.5,P5,Install,Cloud,Unproductive,Approved",
    'Erin,02/04/24,T9,Engineer,"Internal Support, Projects & Documents",Delta,2.5,P6,Internal Tools,Network,Unproductive,Approved',
    "Erin,03/04/2024,T10,Engineer,Project Management,Delta,5,P6,Support,Network,Productive,Approved",
    "Frank,12/04/2024,T11,Lead,Project Management,Acme,3,P1,Install,Team Lead,Productive,Approved",
    "Gina,13/04/2024,T12,Head,Admin,Acme,2,P1,Install,HoPS,Productive,Approved",
    "Hank,2024-04-14,T13,Engineer,Admin,Acme,2,P1,Install,Cloud,Productive,Approved",
    "Ivy,14/04/2024,T14,Engineer,Admin,Acme,0,P1,Install,Cloud,Productive,Approved",
    "Jack,16/04/2024,T15,Engineer,Mystery,,1,,,Cloud,productive,Approved",
]


def csv_text(header: str = HEADER, lines: List[str] = SAMPLE_LINES) -> str:
    return "\n".join([header, *lines]) + "\n"


@pytest.fixture()
def sample_csv() -> bytes:
    return csv_text().encode("utf-8")


@pytest.fixture()
def parsed(sample_csv: bytes) -> ParseResult:
    return parse_timesheets(sample_csv)


@pytest.fixture()
def rows(parsed: ParseResult) -> pd.DataFrame:
    return parsed.rows


RECORD_DEFAULTS: Dict[str, Any] = {
    "Member": "Alice",
    "Date": "08/01/2024",
    "Ticket": "T1",
    "Work Role": "Engineer",
    "Work Type": "Project Installation & Engineering",
    "Company": "Acme",
    "Hours": "7.5",
    "Project/Ticket": "P1",
    "Project Type": "Install",
    "Role": "Cloud",
    "Productivity": "Productive",
}


def make_rows(records: List[Dict[str, Any]]) -> pd.DataFrame:
    raw = pd.DataFrame([{**RECORD_DEFAULTS, **r} for r in records]).astype(str)
    return normalize_rows(map_columns(raw)).rows
