"""
Canonical CBOR codec (deterministic)
------------------------------------

Thin wrapper over `cbor2` in canonical mode (RFC 8949 "Deterministic
Encoding"): map keys are sorted by their encoded bytes, integers use the
shortest form, and no indefinite-length items are emitted.

The registry persists its event map through this codec, so the same logical
state always produces byte-identical storage values.

Supported Python types (what the registry writes):
- None, bool, int, str, bytes
- list/tuple
- dict (keys int/str)

Public API:
- dumps(obj) -> bytes
- loads(b: bytes) -> object

Failures surface as SerializationError / DeserializationError.
"""

from __future__ import annotations

from typing import Any

import cbor2

from ..errors import DeserializationError, SerializationError


def dumps(obj: Any) -> bytes:
    """Encode `obj` to canonical CBOR bytes."""
    try:
        return cbor2.dumps(obj, canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise SerializationError("canonical CBOR encoding failed", type=type(obj).__name__).with_cause(e)


def loads(data: bytes) -> Any:
    """Decode a single CBOR item."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise DeserializationError("CBOR payload must be bytes", type=type(data).__name__)
    buf = bytes(data)
    if not buf:
        raise DeserializationError("empty CBOR payload")
    try:
        return cbor2.loads(buf)
    except (cbor2.CBORDecodeError, ValueError, TypeError) as e:
        raise DeserializationError("malformed CBOR payload", size=len(buf)).with_cause(e)


__all__ = ["dumps", "loads"]
