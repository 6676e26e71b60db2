from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

import pandas as pd

from timesheets.mapping import DEFAULT_MAPPING, MappingConfig


logger = logging.getLogger(__name__)


class MissingHeadersError(ValueError):
    """Raised when canonical headers are still absent after alias resolution."""

    def __init__(self, missing_headers: Sequence[str]):
        self.missing_headers = list(missing_headers)
        super().__init__(f"Missing required headers: {', '.join(self.missing_headers)}")


def clean_header(name: object) -> str:
    return str(name).strip()


def resolve_header(name: object, config: MappingConfig = DEFAULT_MAPPING) -> str:
    cleaned = clean_header(name)
    return config.legacy_columns.get(cleaned, cleaned)


def find_missing_headers(columns: Iterable[object], config: MappingConfig = DEFAULT_MAPPING) -> List[str]:
    resolved = {resolve_header(c, config) for c in columns if clean_header(c) not in config.dropped_columns}
    return [h for h in config.canonical_headers if h not in resolved]


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def strip_text_columns(df: pd.DataFrame) -> pd.DataFrame:
    for col in df.columns:
        series = df[col]
        if series.dtype == object or pd.api.types.is_string_dtype(series):
            df[col] = series.fillna("").astype(str).str.strip()
    return df


def map_columns(raw: pd.DataFrame, config: MappingConfig = DEFAULT_MAPPING) -> pd.DataFrame:
    """Translate legacy headers to canonical names and validate the header set.

    Returns a new frame whose columns include every canonical header; legacy
    alias columns are folded into their canonical column and dropped columns
    (``Status``) are removed. Raises :class:`MissingHeadersError` listing the
    canonical headers that are still absent.
    """
    df = raw.copy()
    df.columns = [clean_header(c) for c in df.columns]
    df = drop_duplicate_columns(df)
    df = df.drop(columns=[c for c in df.columns if c in config.dropped_columns])

    missing = find_missing_headers(df.columns, config)
    if missing:
        logger.error("Missing headers %s; available headers: %s", missing, list(df.columns))
        raise MissingHeadersError(missing)

    for legacy, canonical in config.legacy_columns.items():
        if legacy not in df.columns:
            continue
        # Alias values win over a canonical column of the same meaning.
        df[canonical] = df[legacy]
        df = df.drop(columns=[legacy])

    return strip_text_columns(df)
