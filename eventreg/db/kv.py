"""
KV interface & key prefixes
===========================

This module defines the backend-agnostic Key–Value interface the registry
persists through. Backends (sqlite) implement this interface and the batch
semantics. This file is *pure interface + helpers* and contains no I/O.

Key building helpers
--------------------
A small DSL constructs unambiguous keys under a namespace:

- Prefix(b"ev") produces a prefix object:
    Prefix(b"ev").key(b"events") → b"ev:" + len|b"events"
- Fixed-width integers for stored values: be_u32(counter)

Length-prefixing each part avoids delimiter-escaping pitfalls.

Batching
--------
`KV.batch()` returns a context manager. Use it to atomically put/delete:

>>> with kv.batch() as b:
...     b.put(Prefix(b"ev").key(b"a"), b"1")
...     b.delete(Prefix(b"ev").key(b"b"))
"""

from __future__ import annotations

from typing import Optional, Protocol, Union, runtime_checkable

# ---------------------------------------------------------------------------
# Prefix helpers
# ---------------------------------------------------------------------------

NS_SEP = b":"  # namespace separator used only once after the leading ns


class Prefix:
    """
    Represents a logical namespace prefix (e.g., b"ev:").

    .raw gives the raw bytes prefix.
    .key(*parts) builds a composite key: prefix + ∑ (uvarlen | part_bytes).
    """

    __slots__ = ("_raw",)

    def __init__(self, ns: Union[bytes, bytearray, memoryview, str]) -> None:
        if isinstance(ns, str):
            ns_b = ns.encode("ascii")
        else:
            ns_b = bytes(ns)
        if len(ns_b) == 0:
            raise ValueError("namespace must be non-empty")
        self._raw = ns_b.rstrip(NS_SEP) + NS_SEP

    @property
    def raw(self) -> bytes:
        return self._raw

    def key(self, *parts: Union[bytes, bytearray, memoryview, str, int]) -> bytes:
        """Build a composite key under this prefix."""
        out = bytearray(self._raw)
        for p in parts:
            pb = _part_to_bytes(p)
            out.extend(_uvarint_len(len(pb)))
            out.extend(pb)
        return bytes(out)

    def __repr__(self) -> str:
        return f"Prefix({self._raw!r})"


def _part_to_bytes(p: Union[bytes, bytearray, memoryview, str, int]) -> bytes:
    if isinstance(p, (bytes, bytearray, memoryview)):
        return bytes(p)
    if isinstance(p, str):
        return p.encode("utf-8")
    if isinstance(p, int) and not isinstance(p, bool):
        if p < 0:
            raise ValueError("negative ints not supported in key parts")
        return p.to_bytes(max(1, (p.bit_length() + 7) // 8), "big")
    raise TypeError(f"unsupported key part type: {type(p)!r}")


def _uvarint_len(n: int) -> bytes:
    """LEB128-like unsigned length prefix."""
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(0x80 | b)
        else:
            out.append(b)
            return bytes(out)


def be_u32(n: int) -> bytes:
    if not (0 <= n < (1 << 32)):
        raise ValueError("be_u32 out of range")
    return n.to_bytes(4, "big")


# ---------------------------------------------------------------------------
# KV protocols & Batch
# ---------------------------------------------------------------------------


@runtime_checkable
class Batch(Protocol):
    """
    A write-batch context manager. Backend guarantees atomicity when exiting
    the context without exception. If an exception escapes, the batch is rolled back.
    """

    def put(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "Batch": ...
    def __exit__(self, exc_type, exc, tb) -> Optional[bool]: ...


@runtime_checkable
class KV(Protocol):
    """Read/write KV surface the registry depends on."""

    def get(self, key: bytes) -> Optional[bytes]:
        """Fetch value or None if missing."""
        ...

    def put(self, key: bytes, value: bytes) -> None:
        """Persist (key,value). Overwrites if exists."""
        ...

    def delete(self, key: bytes) -> None:
        """Remove key if present (idempotent)."""
        ...

    def batch(self) -> Batch:
        """Return a new write batch."""
        ...

    def close(self) -> None:
        """Close resources."""
        ...


__all__ = [
    "KV",
    "Batch",
    "Prefix",
    "be_u32",
]
