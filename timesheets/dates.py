"""UK date parsing and the calendar bucket keys derived from a parsed date.

All keys for a row (calendar month, ISO week, fiscal year, fiscal month) are
derived from one ``datetime.date`` via :func:`date_buckets` so they can never
disagree with each other.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Dict, Optional, Tuple

import pandas as pd


# Strict patterns, tried in order: DD/MM/YYYY, D/M/YYYY, DD/MM/YY.
DATE_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("DD/MM/YYYY", re.compile(r"(\d{2})/(\d{2})/(\d{4})", re.ASCII)),
    ("D/M/YYYY", re.compile(r"([1-9]\d?)/([1-9]\d?)/(\d{4})", re.ASCII)),
    ("DD/MM/YY", re.compile(r"(\d{2})/(\d{2})/(\d{2})", re.ASCII)),
)

FISCAL_YEAR_START_MONTH = 4
TWO_DIGIT_YEAR_PIVOT = 68


def _expand_year(token: str) -> int:
    year = int(token)
    if len(token) == 2:
        return year + (1900 if year > TWO_DIGIT_YEAR_PIVOT else 2000)
    return year


def parse_uk_date(value: object) -> Optional[date]:
    """Parse a UK-formatted date string, returning None when no pattern matches.

    Day and month must both be zero-padded (``DD/MM``) or both unpadded
    (``D/M``); impossible calendar dates such as ``31/02/2024`` are rejected
    rather than rolled over.
    """
    if not isinstance(value, str):
        return None
    for _, pattern in DATE_PATTERNS:
        match = pattern.fullmatch(value)
        if not match:
            continue
        day, month, year = match.groups()
        try:
            return date(_expand_year(year), int(month), int(day))
        except ValueError:
            continue
    return None


def parse_iso_date(value: object) -> Optional[date]:
    """Coerce a filter bound (date, datetime, or ISO string) to a date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    ts = pd.to_datetime(value.strip(), errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def calendar_month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def iso_week_key(d: date) -> str:
    iso_year, iso_week, _ = d.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def _fiscal_start_year(year: int, month: int) -> int:
    return year if month >= FISCAL_YEAR_START_MONTH else year - 1


def fiscal_year_label(start_year: int) -> str:
    return f"FY{start_year % 100:02d}"


def fiscal_year_key(d: date) -> str:
    return fiscal_year_label(_fiscal_start_year(d.year, d.month))


def fiscal_month_key(d: date) -> str:
    if d.month >= FISCAL_YEAR_START_MONTH:
        fiscal_month = d.month - 3
    else:
        fiscal_month = d.month + 9
    return f"{fiscal_year_key(d)}-{fiscal_month:02d}"


def date_buckets(d: date) -> Dict[str, object]:
    return {
        "calendar_month": calendar_month_key(d),
        "iso_week": iso_week_key(d),
        "fiscal_year": fiscal_year_key(d),
        "fiscal_month": fiscal_month_key(d),
        "dow": d.isoweekday(),
    }


def _split_month(calendar_month: str) -> Tuple[int, int]:
    year, month = calendar_month.split("-")
    return int(year), int(month)


def quarter_from_month(calendar_month: object) -> Optional[str]:
    """``"2024-04"`` -> ``"2024-Q2"``; None for anything that is not ``YYYY-MM``."""
    if not isinstance(calendar_month, str):
        return None
    try:
        year, month = _split_month(calendar_month)
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return f"{year:04d}-Q{math.ceil(month / 3)}"


def fiscal_year_from_month(calendar_month: object) -> Optional[str]:
    if not isinstance(calendar_month, str):
        return None
    try:
        year, month = _split_month(calendar_month)
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return fiscal_year_label(_fiscal_start_year(year, month))
