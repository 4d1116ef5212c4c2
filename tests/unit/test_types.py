"""
Event type tests
- Status parsing from variant names
- u32/u64 range checks reject bools and out-of-range values
- Symbol validation in strict mode
- Event wire shape and rebuild from decoded entries
"""
from __future__ import annotations

import pytest

from eventreg.errors import DeserializationError, InvalidInput
from eventreg.types import (
    U32_MAX,
    U64_MAX,
    Event,
    Status,
    check_text,
    check_u32,
    check_u64,
    is_symbol,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Active", Status.ACTIVE),
        ("completed", Status.COMPLETED),
        (" COMPLETED ", Status.COMPLETED),
        (Status.ACTIVE, Status.ACTIVE),
    ],
)
def test_status_parse(raw, expected):
    assert Status.parse(raw) is expected


@pytest.mark.parametrize("raw", ["Cancelled", "", 1, None])
def test_status_parse_rejects(raw):
    with pytest.raises(InvalidInput):
        Status.parse(raw)


def test_integer_checks():
    assert check_u32("id", 0) == 0
    assert check_u32("id", U32_MAX) == U32_MAX
    assert check_u64("d", U64_MAX) == U64_MAX
    for bad in (-1, U32_MAX + 1, True, 2.0, "3"):
        with pytest.raises(InvalidInput):
            check_u32("id", bad)
    with pytest.raises(InvalidInput) as ei:
        check_u64("start_date", U64_MAX + 1)
    assert ei.value.data["field"] == "start_date"


def test_symbols():
    assert is_symbol("Event_1")
    assert is_symbol("x" * 32)
    assert not is_symbol("x" * 33)
    assert not is_symbol("with space")
    assert not is_symbol("dash-ed")


def test_check_text():
    assert check_text("name", "any thing!") == "any thing!"
    assert check_text("name", "Event_1", strict=True) == "Event_1"
    with pytest.raises(InvalidInput):
        check_text("name", "any thing!", strict=True)
    with pytest.raises(InvalidInput):
        check_text("name", b"bytes")


def test_event_wire_shape():
    ev = Event(3, "Name", "Desc", 10, 20, Status.COMPLETED)
    assert ev.to_obj() == {
        "event_id": 3,
        "name": "Name",
        "description": "Desc",
        "start_date": 10,
        "end_date": 20,
        "status": "Completed",
    }
    assert Event.from_obj(ev.to_obj()) == ev


def test_event_defaults_to_active():
    assert Event(1, "a", "b", 0, 0).status is Status.ACTIVE


def test_event_is_immutable():
    ev = Event(1, "a", "b", 0, 0)
    with pytest.raises(AttributeError):
        ev.event_id = 2


@pytest.mark.parametrize(
    "entry",
    [
        [1, "a"],
        {"event_id": 1, "name": "a"},
        {"event_id": -1, "name": "a", "description": "b", "start_date": 0, "end_date": 0, "status": "Active"},
        {"event_id": 1, "name": "a", "description": "b", "start_date": 0, "end_date": 0, "status": "Paused"},
    ],
)
def test_event_from_bad_entry(entry):
    with pytest.raises(DeserializationError):
        Event.from_obj(entry)
