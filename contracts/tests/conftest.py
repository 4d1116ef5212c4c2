# -*- coding: utf-8 -*-
"""
contracts.tests.conftest
========================

Pytest fixtures for the Event registry.

- `kv`          : a fresh in-memory SQLite store, closed after the test.
- `registry`    : an `EventRegistry` bound to `kv` under the default namespace.
- `sqlite_path` : a file path for tests that reopen a store across handles.

Usage (inside a test file):
    def test_create(registry):
        assert registry.create_event("Launch", "Kickoff", 1, 2) == 1
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from contracts.events import EventRegistry, bind
from eventreg.db import open_kv
from eventreg.db.sqlite import SQLiteKV

# --- stable env for tests -----------------------------------------------------

os.environ.setdefault("TZ", "UTC")
# Keep the registry namespace/config deterministic regardless of the caller's env.
for _var in ("EVREG_NAMESPACE", "EVREG_STRICT_SYMBOLS", "EVREG_DB_URI"):
    os.environ.pop(_var, None)


@pytest.fixture()
def kv() -> Iterator[SQLiteKV]:
    store = open_kv("memory://")
    try:
        yield store
    finally:
        store.close()


@pytest.fixture()
def registry(kv: SQLiteKV) -> EventRegistry:
    return bind(kv)


@pytest.fixture()
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "events.db"
