from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple

import pandas as pd


CANONICAL_HEADERS: Tuple[str, ...] = (
    "Member",
    "Date",
    "Ticket",
    "Work Role",
    "Work Type",
    "Company",
    "Hours",
    "Project/Ticket",
    "Project Type",
    "Role",
    "Productivity",
)

LEGACY_COLUMNS: Mapping[str, str] = MappingProxyType(
    {
        "Team": "Role",
        "Project/Ticket/Worktype": "Project/Ticket",
        "Date  (dd/MM/yyyy)": "Date",
    }
)

# Every row is treated as approved.
DROPPED_COLUMNS: FrozenSet[str] = frozenset({"Status"})

WORK_TYPE_TO_BOARD: Mapping[str, str] = MappingProxyType(
    {
        "Project Installation & Engineering": "Tech Delivery",
        "Project Management": "PM Delivery",
        "Solutions & Scoping": "Pre-Sales",
        "Admin": "Internal Admin",
        "Internal Support, Projects & Documents": "Internal Support",
        "Internal Support & Projects": "Internal Support",
    }
)
BOARD_DEFAULT = "Other"

INTERNAL_COMPANIES: FrozenSet[str] = frozenset({"OryxAlign", "OryxAlign-Internal c/code"})
INTERNAL_PROJECT_PREFIX = "Internal"

EXCLUDED_ROLES: FrozenSet[str] = frozenset({"HoPS"})

# Filled with "Unknown" when blank; the remaining text columns fall back to "".
UNKNOWN_DEFAULT_COLUMNS: Tuple[str, ...] = ("Company", "Project/Ticket", "Project Type", "Work Type")

DAY_HOURS = 7.5
WEEK_HOURS = 37.5
ROLE_TARGETS: Mapping[str, float] = MappingProxyType(
    {
        "Cloud": 0.75,
        "Network": 0.75,
        "PM": 0.70,
        "Team Lead": 0.60,
    }
)

# member -> (Mon-Thu hours, Fri hours) for compressed schedules.
SCHEDULE_OVERRIDES: Mapping[str, Tuple[float, float]] = MappingProxyType({"Mark Bolton": (8.25, 4.5)})


@dataclass(frozen=True)
class MappingConfig:
    canonical_headers: Tuple[str, ...] = CANONICAL_HEADERS
    legacy_columns: Mapping[str, str] = field(default_factory=lambda: LEGACY_COLUMNS)
    dropped_columns: FrozenSet[str] = DROPPED_COLUMNS
    work_type_to_board: Mapping[str, str] = field(default_factory=lambda: WORK_TYPE_TO_BOARD)
    board_default: str = BOARD_DEFAULT
    internal_companies: FrozenSet[str] = INTERNAL_COMPANIES
    internal_project_prefix: str = INTERNAL_PROJECT_PREFIX
    excluded_roles: FrozenSet[str] = EXCLUDED_ROLES
    unknown_default_columns: Tuple[str, ...] = UNKNOWN_DEFAULT_COLUMNS


DEFAULT_MAPPING = MappingConfig()


def map_work_type_to_board(work_type: object, config: MappingConfig = DEFAULT_MAPPING) -> str:
    if not isinstance(work_type, str):
        return config.board_default
    return config.work_type_to_board.get(work_type, config.board_default)


def is_internal_work(company: object, project_type: object, config: MappingConfig = DEFAULT_MAPPING) -> bool:
    if isinstance(company, str) and company in config.internal_companies:
        return True
    return isinstance(project_type, str) and project_type.startswith(config.internal_project_prefix)


def board_work_type_series(work_types: pd.Series, config: MappingConfig = DEFAULT_MAPPING) -> pd.Series:
    return work_types.map(lambda v: map_work_type_to_board(v, config)).astype(object)


def internal_series(df: pd.DataFrame, config: MappingConfig = DEFAULT_MAPPING) -> pd.Series:
    if df.empty:
        return pd.Series(dtype=bool, index=df.index)
    by_company = df["Company"].isin(config.internal_companies)
    by_project = df["Project Type"].astype(str).str.startswith(config.internal_project_prefix)
    return (by_company | by_project).astype(bool)
