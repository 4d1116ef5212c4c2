"""
SQLite-backed KV store
======================

A small embedded KV using SQLite (BLOB keys & values), implementing the
`KV` / `Batch` protocols from `eventreg.db.kv`.

- Table schema: kv(k BLOB PRIMARY KEY, v BLOB NOT NULL)
- Keys/values are raw bytes.

Pragmas:
- WAL journal and NORMAL sync for file databases.

Errors:
- Every `sqlite3.Error` surfaces as `DatabaseError` (EVREG/DB). Operational
  failures (locked/busy database, I/O) are marked retryable; misuse such as
  a closed connection is not.

Threading:
- `check_same_thread=False` for multi-threaded access. The caller provides
  external synchronization; batches execute inside a single transaction.
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from ..errors import DatabaseError, wrap
from .kv import KV, Batch

MEMORY_PATH = ":memory:"
DEFAULT_TIMEOUT = 5.0  # seconds to wait on a locked database

DEFAULT_PRAGMAS = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "temp_store": "MEMORY",
    "foreign_keys": "OFF",
}

PathLike = Union[str, "os.PathLike[str]"]


@contextmanager
def _db_errors(op: str, **ctx) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        retryable = isinstance(e, sqlite3.OperationalError)
        raise wrap(e, as_=DatabaseError, retryable=retryable, op=op, **ctx) from e


def _apply_pragmas(conn: sqlite3.Connection, pragmas: Optional[dict] = None) -> None:
    p = dict(DEFAULT_PRAGMAS)
    if pragmas:
        p.update(pragmas)
    cur = conn.cursor()
    for name in ("journal_mode", "synchronous", "temp_store", "foreign_keys"):
        cur.execute(f"PRAGMA {name}={p[name]}")
    cur.close()


def _migrate(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            k BLOB PRIMARY KEY,
            v BLOB NOT NULL
        )
        """
    )


_UPSERT = "INSERT INTO kv(k, v) VALUES(?, ?) ON CONFLICT(k) DO UPDATE SET v=excluded.v"


class SQLiteBatch(Batch):
    __slots__ = ("_conn", "_open")

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._open = False

    def __enter__(self) -> "SQLiteBatch":
        if self._open:
            raise RuntimeError("batch already open (nested batches not supported)")
        # BEGIN IMMEDIATE takes the write lock up front
        with _db_errors("begin"):
            self._conn.execute("BEGIN IMMEDIATE")
        self._open = True
        return self

    def put(self, key: bytes, value: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        with _db_errors("put"):
            self._conn.execute(_UPSERT, (memoryview(key), memoryview(value)))

    def delete(self, key: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        with _db_errors("delete"):
            self._conn.execute("DELETE FROM kv WHERE k = ?", (memoryview(key),))

    def commit(self) -> None:
        if not self._open:
            return
        with _db_errors("commit"):
            try:
                self._conn.execute("COMMIT")
            except sqlite3.Error:
                # a failed COMMIT can leave the transaction open
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise
            finally:
                self._open = False

    def rollback(self) -> None:
        if not self._open:
            return
        try:
            with _db_errors("rollback"):
                self._conn.execute("ROLLBACK")
        finally:
            self._open = False

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return None


def _open_connection(
    path: PathLike,
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
) -> sqlite3.Connection:
    path_str = str(path)
    if path_str != MEMORY_PATH and not create and not os.path.exists(path_str):
        raise DatabaseError("sqlite KV not found", retryable=False, path=path_str)

    try:
        conn = sqlite3.connect(
            path_str,
            timeout=timeout,
            detect_types=0,
            isolation_level=None,  # autocommit; we explicitly BEGIN for batches
            check_same_thread=False,
        )
        if path_str != MEMORY_PATH:
            _apply_pragmas(conn, pragmas)
        _migrate(conn)
    except sqlite3.Error as e:
        raise DatabaseError("cannot open sqlite KV", retryable=False, path=path_str).with_cause(e) from e
    return conn


class SQLiteKV(KV):
    """
    SQLite-backed KV. Safe for multi-threaded access when the caller
    serializes write batches.

    Use `open_sqlite_kv(path)` to construct.
    """

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: bytes) -> Optional[bytes]:
        with _db_errors("get"):
            cur = self._conn.execute("SELECT v FROM kv WHERE k = ?", (memoryview(key),))
            row = cur.fetchone()
            cur.close()
        return bytes(row[0]) if row is not None else None

    def put(self, key: bytes, value: bytes) -> None:
        with _db_errors("put"):
            self._conn.execute(_UPSERT, (memoryview(key), memoryview(value)))

    def delete(self, key: bytes) -> None:
        with _db_errors("delete"):
            self._conn.execute("DELETE FROM kv WHERE k = ?", (memoryview(key),))

    def batch(self) -> Batch:
        return SQLiteBatch(self._conn)

    def close(self) -> None:
        with _db_errors("close"):
            self._conn.close()

    # --- context manager ---

    def __enter__(self) -> "SQLiteKV":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_sqlite_kv(
    path: PathLike,
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
) -> SQLiteKV:
    """
    Open (or create) a SQLite KV at `path` (":memory:" for an in-process store).

    - `create=False` raises DatabaseError if the DB file does not exist.
    - `timeout` bounds how long a write waits on another connection's lock.
    """
    return SQLiteKV(_open_connection(path, pragmas=pragmas, create=create, timeout=timeout))


__all__ = [
    "SQLiteKV",
    "SQLiteBatch",
    "open_sqlite_kv",
    "MEMORY_PATH",
    "DEFAULT_TIMEOUT",
]
