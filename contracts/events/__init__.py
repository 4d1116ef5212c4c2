# -*- coding: utf-8 -*-
"""
contracts.events
================

The Event registry.

>>> from eventreg.db import open_kv
>>> from contracts.events import bind
>>> reg = bind(open_kv("memory://"))
>>> reg.create_event("Launch", "Kickoff", 100, 200)
1
"""
from eventreg.types import Event, Status

from .contract import EventRegistry, bind
from .state import RegistryState

__all__ = ["EventRegistry", "RegistryState", "Event", "Status", "bind"]
