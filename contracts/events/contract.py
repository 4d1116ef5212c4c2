# -*- coding: utf-8 -*-
"""
Event Registry

Stores Event records keyed by a monotonically increasing u32 ID.

Functions:
- create_event(name, description, start_date, end_date) -> event_id
- read_event(event_id) -> Event | None
- update_event(event_id, name, description, start_date, end_date, status) -> None
- delete_event(event_id) -> None
- list_events() -> list[Event]            (ascending ID order)
- get_event_count() -> int                (events ever created, not live)
- get_event_by_index(index) -> Event | None

Notes:
- The counter never goes down. Deleted IDs are retired, so the map may have gaps.
- `get_event_by_index(i)` is exactly `read_event(i + 1)` when `i < count`.
  It is *not* an ordinal over live events: after a delete, an in-range index
  can return None while later events still exist.
- Unknown IDs are never an error. Reads return None, update/delete do nothing.
"""
from __future__ import annotations

import dataclasses
import threading
from typing import List, Optional, Union

from eventreg.config import DEFAULT_NAMESPACE
from eventreg.db.kv import KV
from eventreg.errors import CounterOverflow
from eventreg.logging import get_logger
from eventreg.types import (
    U32_MAX,
    Event,
    Status,
    check_text,
    check_u32,
    check_u64,
)

from .state import RegistryState

log = get_logger("contracts.events")


class EventRegistry:
    """
    Event registry over an injected KV store.

    One re-entrant lock per instance spans each operation's full
    read-modify-write cycle. The store is borrowed; closing it is the
    caller's responsibility.
    """

    def __init__(
        self,
        kv: KV,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        strict_symbols: bool = False,
    ) -> None:
        self._state = RegistryState(kv, namespace)
        self._namespace = namespace
        self._strict = strict_symbols
        self._lock = threading.RLock()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def strict_symbols(self) -> bool:
        return self._strict

    def __repr__(self) -> str:
        return f"EventRegistry(namespace={self._namespace!r}, strict_symbols={self._strict})"

    # ---- helpers ------------------------------------------------------------

    def _text(self, field: str, value: str) -> str:
        return check_text(field, value, strict=self._strict)

    # ---- mutations ----------------------------------------------------------

    def create_event(self, name: str, description: str, start_date: int, end_date: int) -> int:
        """Append a new Active event and return its ID (1 for the first)."""
        name = self._text("name", name)
        description = self._text("description", description)
        start_date = check_u64("start_date", start_date)
        end_date = check_u64("end_date", end_date)

        with self._lock:
            counter = self._state.load_counter()
            events = self._state.load_events(counter)
            if counter >= U32_MAX:
                raise CounterOverflow(counter, U32_MAX)
            new_id = counter + 1
            events[new_id] = Event(
                event_id=new_id,
                name=name,
                description=description,
                start_date=start_date,
                end_date=end_date,
                status=Status.ACTIVE,
            )
            self._state.save(events, counter=new_id)

        log.info("event created", extra={"op": "create", "event_id": new_id})
        return new_id

    def update_event(
        self,
        event_id: int,
        name: str,
        description: str,
        start_date: int,
        end_date: int,
        status: Union[Status, str],
    ) -> None:
        """Replace every mutable field of an existing event. Unknown IDs are ignored."""
        event_id = check_u32("event_id", event_id)
        name = self._text("name", name)
        description = self._text("description", description)
        start_date = check_u64("start_date", start_date)
        end_date = check_u64("end_date", end_date)
        status = Status.parse(status)

        with self._lock:
            events = self._state.load_events(self._state.load_counter())
            current = events.get(event_id)
            if current is None:
                log.debug("update of unknown event ignored", extra={"op": "update", "event_id": event_id})
                return
            events[event_id] = dataclasses.replace(
                current,
                name=name,
                description=description,
                start_date=start_date,
                end_date=end_date,
                status=status,
            )
            self._state.save(events)

        log.info(
            "event updated",
            extra={"op": "update", "event_id": event_id, "status": status.value},
        )

    def delete_event(self, event_id: int) -> None:
        """Remove an event if present. The counter is untouched and the ID is retired."""
        event_id = check_u32("event_id", event_id)

        with self._lock:
            events = self._state.load_events(self._state.load_counter())
            removed = events.pop(event_id, None)
            self._state.save(events)

        if removed is None:
            log.debug("delete of unknown event ignored", extra={"op": "delete", "event_id": event_id})
        else:
            log.info("event deleted", extra={"op": "delete", "event_id": event_id})

    # ---- reads --------------------------------------------------------------

    def read_event(self, event_id: int) -> Optional[Event]:
        event_id = check_u32("event_id", event_id)
        with self._lock:
            return self._state.load_events().get(event_id)

    def list_events(self) -> List[Event]:
        with self._lock:
            events = self._state.load_events()
        return [events[eid] for eid in sorted(events)]

    def get_event_count(self) -> int:
        with self._lock:
            return self._state.load_counter()

    def get_event_by_index(self, index: int) -> Optional[Event]:
        """Return the event whose ID is `index + 1`, or None when out of range or deleted."""
        index = check_u32("index", index)
        with self._lock:
            counter = self._state.load_counter()
            if index >= counter:
                return None
            return self._state.load_events().get(index + 1)


def bind(
    kv: KV,
    *,
    namespace: str = DEFAULT_NAMESPACE,
    strict_symbols: bool = False,
) -> EventRegistry:
    """Build a registry over `kv`."""
    return EventRegistry(kv, namespace=namespace, strict_symbols=strict_symbols)


__all__ = ["EventRegistry", "bind"]
