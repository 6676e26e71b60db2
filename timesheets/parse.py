from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, List, TextIO, Union

import numpy as np
import pandas as pd

from timesheets.dates import date_buckets, parse_uk_date
from timesheets.mapping import (
    DEFAULT_MAPPING,
    MappingConfig,
    board_work_type_series,
    internal_series,
)
from timesheets.schema import map_columns


logger = logging.getLogger(__name__)

CsvSource = Union[str, Path, bytes, BinaryIO, TextIO]

DERIVED_COLUMNS: List[str] = [
    "date_obj",
    "calendar_month",
    "iso_week",
    "fiscal_year",
    "fiscal_month",
    "dow",
    "is_weekend",
    "is_billable",
    "is_internal",
    "board_work_type",
]

DROP_INVALID_DATE = "invalid_date"
DROP_NO_HOURS = "no_hours"
DROP_EXCLUDED_ROLE = "excluded_role"

LEADING_NUMBER = r"^\s*([-+]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][-+]?[0-9]+)?)"


class EmptyUploadError(ValueError):
    """Raised when an uploaded CSV holds a header but no data rows."""


@dataclass(frozen=True)
class ParseResult:
    rows: pd.DataFrame
    total_rows: int
    dropped: Dict[str, int] = field(default_factory=dict)

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())


def empty_rows_frame(config: MappingConfig = DEFAULT_MAPPING) -> pd.DataFrame:
    return pd.DataFrame(columns=list(config.canonical_headers) + DERIVED_COLUMNS)


def read_timesheet_csv(source: CsvSource) -> pd.DataFrame:
    """Read a CSV upload into a frame of raw strings (no NA coercion)."""
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    return pd.read_csv(
        source,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        encoding="utf-8-sig",
    )


def parse_hours(values: pd.Series) -> pd.Series:
    """Hours as non-negative floats read from the leading number (``"7.5h"`` -> 7.5).

    Thousands separators are ignored; anything without a leading number becomes 0.
    """
    cleaned = values.astype(str).str.replace(",", "", regex=False)
    leading = cleaned.str.extract(LEADING_NUMBER, expand=False)
    hours = pd.to_numeric(leading, errors="coerce").astype(float)
    hours = hours.replace([np.inf, -np.inf], np.nan).fillna(0.0)
    return hours.clip(lower=0.0)


def _fill_defaults(df: pd.DataFrame, config: MappingConfig) -> pd.DataFrame:
    for col in config.canonical_headers:
        if col == "Hours":
            continue
        default = "Unknown" if col in config.unknown_default_columns else ""
        df[col] = df[col].fillna("").astype(str).replace("", default)
    return df


def normalize_rows(mapped: pd.DataFrame, config: MappingConfig = DEFAULT_MAPPING) -> ParseResult:
    """Turn alias-resolved raw rows into normalized rows with derived columns.

    Rows with an unparseable date, with no positive hours, or with an excluded
    role are dropped; the survivors keep their input order.
    """
    total = int(len(mapped))
    if mapped.empty:
        return ParseResult(rows=empty_rows_frame(config), total_rows=total)

    df = mapped[list(config.canonical_headers)].copy()
    df["Hours"] = parse_hours(df["Hours"])
    df["date_obj"] = df["Date"].map(parse_uk_date)

    invalid_date = df["date_obj"].isna()
    no_hours = ~invalid_date & (df["Hours"] <= 0)
    excluded_role = ~invalid_date & ~no_hours & df["Role"].isin(config.excluded_roles)
    dropped = {
        DROP_INVALID_DATE: int(invalid_date.sum()),
        DROP_NO_HOURS: int(no_hours.sum()),
        DROP_EXCLUDED_ROLE: int(excluded_role.sum()),
    }
    if logger.isEnabledFor(logging.DEBUG):
        for idx in df.index[invalid_date]:
            logger.debug("Row %s dropped: invalid date %r", idx + 1, df.at[idx, "Date"])

    df = df[~(invalid_date | no_hours | excluded_role)].reset_index(drop=True)
    df = _fill_defaults(df, config)

    if df.empty:
        logger.warning("All %s rows were dropped during normalization: %s", total, dropped)
        return ParseResult(rows=empty_rows_frame(config), total_rows=total, dropped=dropped)

    buckets = pd.DataFrame([date_buckets(d) for d in df["date_obj"]], index=df.index)
    df = pd.concat([df, buckets], axis=1)
    df["dow"] = df["dow"].astype(int)
    df["is_weekend"] = df["dow"] >= 6
    df["is_billable"] = df["Productivity"].eq("Productive")
    df["is_internal"] = internal_series(df, config)
    df["board_work_type"] = board_work_type_series(df["Work Type"], config)

    logger.info(
        "Normalized %s of %s rows (dropped: %s)",
        len(df),
        total,
        {k: v for k, v in dropped.items() if v},
    )
    return ParseResult(rows=df[list(config.canonical_headers) + DERIVED_COLUMNS], total_rows=total, dropped=dropped)


def parse_timesheets(source: CsvSource, config: MappingConfig = DEFAULT_MAPPING) -> ParseResult:
    """Read, map and normalize one CSV upload.

    Raises MissingHeadersError when canonical headers are absent and
    EmptyUploadError when the file has no data rows.
    """
    try:
        raw = read_timesheet_csv(source)
    except pd.errors.EmptyDataError as exc:
        raise EmptyUploadError("No valid data found in CSV. Please check the file format and headers.") from exc
    logger.info("Parsed %s raw rows from CSV", len(raw))
    mapped = map_columns(raw, config)
    if mapped.empty:
        raise EmptyUploadError("No valid data found in CSV. Please check the file format and headers.")
    return normalize_rows(mapped, config)
