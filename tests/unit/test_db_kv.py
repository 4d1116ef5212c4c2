"""
KV store tests
- Prefix key DSL is length-prefixed per part
- SQLite backend get/put/delete semantics
- Batches commit atomically and roll back on error
- Backend failures (locked store, closed handle) surface as DatabaseError
- URI parsing in open_kv
"""
from __future__ import annotations

import sqlite3

import pytest

from eventreg.db import KV, open_kv, parse_uri
from eventreg.db.kv import Prefix, be_u32
from eventreg.errors import ConfigError, DatabaseError


@pytest.fixture()
def kv():
    store = open_kv("memory://")
    yield store
    store.close()


@pytest.fixture()
def file_kv(tmp_path):
    path = tmp_path / "locked.db"
    store = open_kv(f"sqlite:///{path}", timeout=0.05)
    yield store, path
    store.close()


def _hold_write_lock(path) -> sqlite3.Connection:
    other = sqlite3.connect(str(path), isolation_level=None)
    other.execute("BEGIN IMMEDIATE")
    return other


# ----------------------------- key helpers -----------------------------


def test_prefix_key_layout():
    p = Prefix("ev")
    assert p.raw == b"ev:"
    assert p.key(b"events") == b"ev:" + bytes([6]) + b"events"
    assert p.key("event_counter") == b"ev:" + bytes([13]) + b"event_counter"
    # trailing separator is normalized
    assert Prefix(b"ev:").raw == b"ev:"


def test_prefix_rejects_bad_parts():
    with pytest.raises(ValueError):
        Prefix("")
    with pytest.raises(TypeError):
        Prefix("ev").key(True)
    with pytest.raises(ValueError):
        Prefix("ev").key(-1)


def test_be_u32():
    assert be_u32(1) == b"\x00\x00\x00\x01"
    assert be_u32(0xFFFFFFFF) == b"\xff\xff\xff\xff"
    with pytest.raises(ValueError):
        be_u32(1 << 32)


# ----------------------------- sqlite backend -----------------------------


def test_satisfies_protocol(kv):
    assert isinstance(kv, KV)


def test_put_get_delete(kv):
    assert kv.get(b"k") is None
    kv.put(b"k", b"v1")
    kv.put(b"k", b"v2")
    assert kv.get(b"k") == b"v2"
    kv.delete(b"k")
    kv.delete(b"k")
    assert kv.get(b"k") is None


def test_batch_commits(kv):
    with kv.batch() as b:
        b.put(b"x", b"1")
        b.put(b"y", b"2")
        b.delete(b"x")
    assert kv.get(b"x") is None
    assert kv.get(b"y") == b"2"


def test_batch_rolls_back_on_error(kv):
    kv.put(b"keep", b"old")
    with pytest.raises(RuntimeError):
        with kv.batch() as b:
            b.put(b"keep", b"new")
            b.put(b"other", b"1")
            raise RuntimeError("boom")
    assert kv.get(b"keep") == b"old"
    assert kv.get(b"other") is None


def test_batch_not_open_raises(kv):
    b = kv.batch()
    with pytest.raises(RuntimeError):
        b.put(b"k", b"v")


# ----------------------------- backend failures -----------------------------


def test_locked_store_raises_database_error(file_kv):
    kv, path = file_kv
    kv.put(b"k", b"v")
    other = _hold_write_lock(path)
    try:
        with pytest.raises(DatabaseError) as ei:
            with kv.batch() as b:
                b.put(b"k", b"new")
        assert ei.value.retryable is True
        assert ei.value.data["op"] == "begin"
        assert isinstance(ei.value.cause, sqlite3.OperationalError)
        # WAL readers are not blocked by the writer
        assert kv.get(b"k") == b"v"
    finally:
        other.execute("ROLLBACK")
        other.close()

    # the failed batch left no open transaction behind
    with kv.batch() as b:
        b.put(b"k", b"new")
    assert kv.get(b"k") == b"new"


def test_locked_store_plain_put(file_kv):
    kv, path = file_kv
    other = _hold_write_lock(path)
    try:
        with pytest.raises(DatabaseError):
            kv.put(b"k", b"v")
    finally:
        other.execute("ROLLBACK")
        other.close()


def test_closed_store_raises_database_error(tmp_path):
    kv = open_kv(f"sqlite:///{tmp_path / 'closed.db'}")
    kv.close()
    with pytest.raises(DatabaseError) as ei:
        kv.get(b"k")
    assert ei.value.retryable is False
    with pytest.raises(DatabaseError):
        kv.batch().__enter__()


# ----------------------------- open_kv URIs -----------------------------


def test_open_file_store_persists(tmp_path):
    path = tmp_path / "nested" / "events.db"
    path.parent.mkdir()
    with open_kv(f"sqlite:///{path}") as kv:
        kv.put(b"k", b"v")
    with open_kv(str(path), create=False) as kv:
        assert kv.get(b"k") == b"v"


@pytest.mark.parametrize("uri", ["memory://", "sqlite:///:memory:", "sqlite:///"])
def test_memory_uris(uri):
    assert parse_uri(uri) == ("memory", "")
    with open_kv(uri) as kv:
        kv.put(b"k", b"v")
        assert kv.get(b"k") == b"v"


def test_parse_file_uris():
    assert parse_uri("sqlite:///tmp/events.db") == ("sqlite", "tmp/events.db")
    assert parse_uri("sqlite:////abs/events.db") == ("sqlite", "/abs/events.db")
    assert parse_uri("data/events.db") == ("sqlite", "data/events.db")


def test_missing_file_without_create(tmp_path):
    with pytest.raises(DatabaseError) as ei:
        open_kv(f"sqlite:///{tmp_path / 'absent.db'}", create=False)
    assert ei.value.retryable is False


@pytest.mark.parametrize("uri", ["rocksdb:///tmp/x", "postgres://db", "events.sqlite"])
def test_unsupported_uri(uri):
    with pytest.raises(ConfigError):
        open_kv(uri)
