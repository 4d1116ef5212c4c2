"""
Error system tests
- Stable codes and JSON-safe payloads
- Context/cause cloning leaves the original untouched
- wrap coerces foreign exceptions into a chosen error type
"""
from __future__ import annotations

import json

import pytest

from eventreg.errors import (
    ConfigError,
    CounterOverflow,
    DatabaseError,
    DeserializationError,
    InvalidInput,
    RegistryError,
    RegistryErrorCode,
    SerializationError,
    StateInvariant,
    wrap,
)


@pytest.mark.parametrize(
    "err, code",
    [
        (ConfigError("x"), "EVREG/CONFIG"),
        (DatabaseError("x"), "EVREG/DB"),
        (SerializationError("x"), "EVREG/SERIALIZATION"),
        (DeserializationError("x"), "EVREG/DESERIALIZATION"),
        (InvalidInput("x"), "EVREG/INVALID_INPUT"),
        (CounterOverflow(1, 1), "EVREG/COUNTER_OVERFLOW"),
        (StateInvariant("x"), "EVREG/STATE_INVARIANT"),
    ],
)
def test_codes(err, code):
    assert isinstance(err, RegistryError)
    assert err.to_dict()["code"] == code
    assert str(err).startswith(code)


def test_to_dict_is_json_safe():
    err = InvalidInput("bad", key=b"\x01\x02", status=RegistryErrorCode.DB, items=(1, b"\xff"))
    d = err.to_dict()
    assert d["data"] == {"key": "0102", "status": "EVREG/DB", "items": [1, "ff"]}
    assert d["retryable"] is False
    json.dumps(d)


def test_retryable_flags():
    assert DatabaseError("busy").retryable is True
    assert DatabaseError("gone", retryable=False).retryable is False
    assert ConfigError("x").retryable is False


def test_with_context_and_cause_clone():
    base = InvalidInput("bad", field="name")
    cause = ValueError("inner")
    enriched = base.with_context(op="create").with_cause(cause)
    assert type(enriched) is InvalidInput
    assert enriched.data == {"field": "name", "op": "create"}
    assert enriched.cause is cause
    assert base.data == {"field": "name"}
    assert base.cause is None
    assert enriched.to_dict(include_cause=True)["cause"] == {"type": "ValueError", "message": "inner"}


def test_wrap_foreign_exception():
    err = wrap(OSError("disk"), as_=DatabaseError, path="/x")
    assert isinstance(err, DatabaseError)
    assert err.message == "disk"
    assert err.data["path"] == "/x"
    assert isinstance(err.cause, OSError)


def test_wrap_registry_error_keeps_type():
    err = wrap(ConfigError("bad uri"), as_=DatabaseError, uri="foo://")
    assert isinstance(err, ConfigError)
    assert err.data == {"uri": "foo://"}


def test_wrap_passes_retryable_through():
    err = wrap(OSError("locked"), as_=DatabaseError, retryable=False, op="begin")
    assert err.retryable is False
    assert err.data == {"op": "begin"}


def test_raises_like_an_exception():
    with pytest.raises(RegistryError) as ei:
        raise CounterOverflow(7, 7)
    assert ei.value.data == {"counter": 7, "limit": 7}
