"""
eventreg.db
===========

Thin facade for the key–value store the registry persists through.

URIs
----
- "sqlite:///path/to/events.db"   → SQLite file
- "sqlite:///:memory:"            → in-memory SQLite (tests)
- "memory://"                     → alias of "sqlite:///:memory:"
- Bare path ending in ".db"       → SQLite file

API
---
- parse_uri(uri: str) -> (backend, path)
- open_kv(uri: str, create: bool = True, timeout: float = 5.0) -> KV

The typed KV interface is defined in eventreg.db.kv.

Example
-------
>>> from eventreg.db import open_kv
>>> kv = open_kv("memory://")
>>> with kv.batch() as b:
...     b.put(b"ev:key", b"hello")
>>> kv.get(b"ev:key")
b'hello'
"""

from __future__ import annotations

from typing import Tuple

from ..errors import ConfigError
from . import sqlite as _sqlite_backend
from .kv import KV, Batch, Prefix


def parse_uri(uri: str) -> Tuple[str, str]:
    """
    Parse a DB URI into (backend, path).

    Returns:
        ("sqlite", path) or ("memory", "")

    Raises:
        ConfigError for unsupported URIs.
    """
    u = uri.strip()
    if u.startswith("sqlite:///"):
        path = u[len("sqlite:///") :]
        if path in ("", _sqlite_backend.MEMORY_PATH):
            return ("memory", "")
        return ("sqlite", path)
    if u.startswith("memory://"):
        return ("memory", "")
    if u.endswith(".db") and "://" not in u:
        return ("sqlite", u)
    raise ConfigError(
        "unsupported DB URI; use sqlite:///path/to.db, memory:// or a *.db path", uri=uri
    )


def open_kv(
    uri: str,
    create: bool = True,
    timeout: float = _sqlite_backend.DEFAULT_TIMEOUT,
) -> _sqlite_backend.SQLiteKV:
    """
    Open a KV database by URI. See module docstring for supported forms.

    Raises:
        ConfigError for unsupported URIs.
        DatabaseError if the backend cannot be opened.
    """
    backend, path = parse_uri(uri)
    if backend == "memory":
        return _sqlite_backend.open_sqlite_kv(_sqlite_backend.MEMORY_PATH)
    return _sqlite_backend.open_sqlite_kv(path, create=create, timeout=timeout)


__all__ = [
    "KV",
    "Batch",
    "Prefix",
    "parse_uri",
    "open_kv",
]
