from __future__ import annotations

import json

import pytest

from timesheets.filters import default_filters, normalize_filters
from timesheets.persistence import (
    MAX_AGE_MS,
    STATE_DIR_ENV,
    STORAGE_VERSION,
    default_storage_path,
    load_filters,
    reset_filters,
    save_filters,
)

NOW = 1_700_000_000_000


@pytest.fixture()
def store(tmp_path):
    return tmp_path / "state" / "filters.json"


def _write_blob(path, filters, *, version=STORAGE_VERSION, timestamp=NOW):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"version": version, "timestamp": timestamp, "filters": filters}))


def test_save_then_load(store):
    filters = normalize_filters({"period": "FY", "fy": "FY24", "roles": ["PM"], "productivity": "Productive"})
    assert save_filters(filters, store, now_ms=NOW)
    blob = json.loads(store.read_text())
    assert blob["version"] == STORAGE_VERSION
    assert blob["timestamp"] == NOW
    assert blob["filters"]["roles"] == ["PM"]
    assert load_filters(default_filters(), store, now_ms=NOW + 1000) == filters


def test_missing_file_gives_defaults(store):
    defaults = default_filters()
    assert load_filters(defaults, store) is defaults


def test_stale_blob_gives_defaults(store):
    _write_blob(store, {"productivity": "Productive"}, timestamp=NOW - MAX_AGE_MS - 1)
    defaults = default_filters()
    assert load_filters(defaults, store, now_ms=NOW) is defaults


def test_version_mismatch_gives_defaults(store):
    _write_blob(store, {"productivity": "Productive"}, version="0.9")
    defaults = default_filters()
    assert load_filters(defaults, store, now_ms=NOW) is defaults


def test_corrupt_file_gives_defaults(store):
    store.parent.mkdir(parents=True)
    store.write_text("{not json")
    defaults = default_filters()
    assert load_filters(defaults, store, now_ms=NOW) is defaults


def test_non_utf8_file_gives_defaults(store):
    store.parent.mkdir(parents=True)
    store.write_bytes(b"\xff\xfe\x00garbage")
    defaults = default_filters()
    assert load_filters(defaults, store, now_ms=NOW) is defaults


def test_badly_typed_stored_filters_give_defaults(store):
    _write_blob(store, {"productivity": "Productive", "roles": "Cloud"})
    defaults = default_filters()
    assert load_filters(defaults, store, now_ms=NOW) is defaults


def test_only_stored_keys_override_defaults(store):
    _write_blob(store, {"fy": "FY24"})
    defaults = default_filters()
    loaded = load_filters(defaults, store, now_ms=NOW)
    assert loaded.fy == "FY24"
    assert loaded.period == defaults.period
    assert loaded.members.is_unconstrained


def test_stored_keys_merge_over_defaults(store):
    _write_blob(store, {"productivity": "Unproductive", "companies": ["Acme"]})
    defaults = default_filters()
    loaded = load_filters(defaults, store, now_ms=NOW)
    assert loaded.productivity == "Unproductive"
    assert loaded.companies.values == frozenset({"Acme"})
    assert loaded.roles == defaults.roles
    assert loaded.work_types_board == defaults.work_types_board


def test_reset_clears_storage(store):
    save_filters(normalize_filters({"roles": ["PM"]}), store, now_ms=NOW)
    defaults = default_filters()
    assert reset_filters(defaults, store) is defaults
    assert not store.exists()
    # Clearing twice is harmless.
    reset_filters(defaults, store)


def test_state_dir_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv(STATE_DIR_ENV, str(tmp_path))
    assert default_storage_path() == tmp_path / "filters.json"
