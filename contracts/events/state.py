# -*- coding: utf-8 -*-
"""
Persisted state of the Event registry.

Two entries live under the registry namespace:

    <ns>:events         → canonical CBOR map {event_id: event-entry}
    <ns>:event_counter  → u32, 4 bytes big-endian

Absent entries read as their defaults (empty map, counter 0). Anything present
but unreadable raises instead of being reset.
"""
from __future__ import annotations

from typing import Dict, Optional

from eventreg.db.kv import KV, Prefix, be_u32
from eventreg.encoding import cbor_dumps, cbor_loads
from eventreg.errors import DeserializationError, StateInvariant
from eventreg.types import Event

# ---- storage layout ---------------------------------------------------------

EVENTS_KEY = b"events"
COUNTER_KEY = b"event_counter"

EventMap = Dict[int, Event]


class RegistryState:
    """Load-or-default accessors and a batched writer for the registry entries."""

    __slots__ = ("_kv", "_prefix", "_events_key", "_counter_key")

    def __init__(self, kv: KV, namespace: str) -> None:
        self._kv = kv
        self._prefix = Prefix(namespace)
        self._events_key = self._prefix.key(EVENTS_KEY)
        self._counter_key = self._prefix.key(COUNTER_KEY)

    @property
    def events_key(self) -> bytes:
        return self._events_key

    @property
    def counter_key(self) -> bytes:
        return self._counter_key

    # ---- reads --------------------------------------------------------------

    def load_counter(self) -> int:
        raw = self._kv.get(self._counter_key)
        if raw is None:
            return 0
        if len(raw) != 4:
            raise DeserializationError("event counter must be 4 bytes", length=len(raw))
        return int.from_bytes(raw, "big")

    def load_events(self, counter: Optional[int] = None) -> EventMap:
        """
        Decode the events map. When `counter` is given, every stored ID must
        lie in 1..counter.
        """
        raw = self._kv.get(self._events_key)
        if raw is None:
            return {}
        obj = cbor_loads(raw)
        if not isinstance(obj, dict):
            raise DeserializationError("events entry must be a map", type=type(obj).__name__)

        out: EventMap = {}
        for key, entry in obj.items():
            if not isinstance(key, int) or isinstance(key, bool):
                raise DeserializationError("event key must be an integer", key=key)
            ev = Event.from_obj(entry)
            if ev.event_id != key:
                raise StateInvariant("stored key and event_id differ", key=key, event_id=ev.event_id)
            if counter is not None and not (1 <= key <= counter):
                raise StateInvariant("stored event_id outside 1..counter", event_id=key, counter=counter)
            out[key] = ev
        return out

    # ---- writes -------------------------------------------------------------

    def save(self, events: EventMap, counter: Optional[int] = None) -> None:
        """Persist the map (and the counter, if given) in one write batch."""
        payload = cbor_dumps({eid: ev.to_obj() for eid, ev in events.items()})
        with self._kv.batch() as b:
            b.put(self._events_key, payload)
            if counter is not None:
                b.put(self._counter_key, be_u32(counter))


__all__ = ["RegistryState", "EventMap", "EVENTS_KEY", "COUNTER_KEY"]
