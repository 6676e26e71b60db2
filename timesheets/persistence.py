"""Filter-state persistence at the application boundary.

The pipeline never touches storage; the app calls :func:`load_filters` once at
startup and :func:`save_filters` after each change. The stored blob is
``{"version", "timestamp", "filters"}`` with ``timestamp`` in epoch
milliseconds.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from timesheets.filters import FilterState, filters_to_dict, normalize_filters
from timesheets.schemas import FilterStateModel, PersistedFilters


logger = logging.getLogger(__name__)

STORAGE_VERSION = "1.0"
STORAGE_FILENAME = "filters.json"
STATE_DIR_ENV = "TIME_ANALYTICS_STATE_DIR"
MAX_AGE_MS = 30 * 24 * 60 * 60 * 1000


def default_storage_path() -> Path:
    base = os.environ.get(STATE_DIR_ENV)
    root = Path(base) if base else Path.home() / ".time_analytics"
    return root / STORAGE_FILENAME


def _now_ms() -> int:
    return int(time.time() * 1000)


def save_filters(filters: FilterState, path: Optional[Path] = None, *, now_ms: Optional[int] = None) -> bool:
    path = path or default_storage_path()
    blob = PersistedFilters(
        version=STORAGE_VERSION,
        timestamp=now_ms if now_ms is not None else _now_ms(),
        filters=FilterStateModel(**filters_to_dict(filters)),
    )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(blob.model_dump_json(), encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to save filters to %s: %s", path, exc)
        return False
    return True


def load_filters(defaults: FilterState, path: Optional[Path] = None, *, now_ms: Optional[int] = None) -> FilterState:
    """Restore stored filters merged over ``defaults``.

    Falls back to ``defaults`` when nothing is stored, the version differs, the
    blob is older than 30 days, or it cannot be read or validated.
    """
    path = path or default_storage_path()
    if not path.exists():
        return defaults
    try:
        blob = PersistedFilters.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValidationError) as exc:
        logger.warning("Failed to load filters from %s: %s", path, exc)
        return defaults

    if blob.version != STORAGE_VERSION:
        logger.info("Filter storage version mismatch, using defaults")
        return defaults
    now = now_ms if now_ms is not None else _now_ms()
    if blob.timestamp < now - MAX_AGE_MS:
        logger.info("Stored filters too old, using defaults")
        return defaults

    merged: Dict[str, Any] = {**filters_to_dict(defaults), **blob.filters.model_dump(exclude_unset=True)}
    logger.info("Loaded filters from %s", path)
    return normalize_filters(merged)


def clear_stored_filters(path: Optional[Path] = None) -> None:
    path = path or default_storage_path()
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to clear stored filters at %s: %s", path, exc)
        return
    logger.info("Cleared stored filters")


def reset_filters(defaults: FilterState, path: Optional[Path] = None) -> FilterState:
    clear_stored_filters(path)
    return defaults
