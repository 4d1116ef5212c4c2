"""
Event record & domain checks.

An Event is identified by a registry-assigned u32 `event_id` and carries two
short text tokens, a pair of u64 timestamps and a lifecycle `Status`.

Wire shape (inside the registry's CBOR map entry):

    {"event_id": uint, "name": tstr, "description": tstr,
     "start_date": uint, "end_date": uint, "status": "Active" | "Completed"}

Symbols
-------
Names and descriptions are "symbols": short tokens of up to 32 characters
from [A-Za-z0-9_]. The registry accepts any `str` unless strict symbol
checking is requested, in which case `check_text(..., strict=True)` enforces
that charset and length.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union

from ..errors import DeserializationError, InvalidInput

U32_MAX = (1 << 32) - 1
U64_MAX = (1 << 64) - 1

SYMBOL_MAX_LEN = 32
_SYMBOL_RE = re.compile(r"^[A-Za-z0-9_]{0,%d}$" % SYMBOL_MAX_LEN)


class Status(enum.Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, value: Union["Status", str]) -> "Status":
        """Accept a Status or its variant name (case-insensitive)."""
        if isinstance(value, Status):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        raise InvalidInput("unknown status", status=value, allowed=[m.value for m in cls])


# ------------------------------------------------------------------ checks


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def check_u32(field: str, value: Any) -> int:
    if not _is_int(value) or not (0 <= value <= U32_MAX):
        raise InvalidInput(f"{field} must be a u32", field=field, value=value)
    return value


def check_u64(field: str, value: Any) -> int:
    if not _is_int(value) or not (0 <= value <= U64_MAX):
        raise InvalidInput(f"{field} must be a u64", field=field, value=value)
    return value


def is_symbol(text: str) -> bool:
    return bool(_SYMBOL_RE.match(text))


def check_text(field: str, value: Any, *, strict: bool = False) -> str:
    if not isinstance(value, str):
        raise InvalidInput(f"{field} must be a string", field=field, type=type(value).__name__)
    if strict and not is_symbol(value):
        raise InvalidInput(
            f"{field} must be a symbol ([A-Za-z0-9_], <= {SYMBOL_MAX_LEN} chars)",
            field=field,
            value=value,
        )
    return value


# ------------------------------------------------------------------ record


@dataclass(frozen=True)
class Event:
    event_id: int
    name: str
    description: str
    start_date: int
    end_date: int
    status: Status = Status.ACTIVE

    def to_obj(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "name": self.name,
            "description": self.description,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "status": self.status.value,
        }

    @classmethod
    def from_obj(cls, obj: Mapping[str, Any]) -> "Event":
        """Rebuild an Event from its decoded wire shape."""
        if not isinstance(obj, Mapping):
            raise DeserializationError("event entry must be a map", type=type(obj).__name__)
        try:
            return cls(
                event_id=check_u32("event_id", obj["event_id"]),
                name=check_text("name", obj["name"]),
                description=check_text("description", obj["description"]),
                start_date=check_u64("start_date", obj["start_date"]),
                end_date=check_u64("end_date", obj["end_date"]),
                status=Status.parse(obj["status"]),
            )
        except KeyError as e:
            raise DeserializationError("event entry is missing a field", field=str(e.args[0])) from e
        except InvalidInput as e:
            raise DeserializationError("event entry is malformed", **e.data).with_cause(e) from e

    def to_json(self) -> Dict[str, Any]:
        """JSON-friendly view (same shape as the wire form)."""
        return self.to_obj()


__all__ = [
    "Event",
    "Status",
    "U32_MAX",
    "U64_MAX",
    "SYMBOL_MAX_LEN",
    "check_u32",
    "check_u64",
    "check_text",
    "is_symbol",
]
