# -*- coding: utf-8 -*-
"""
contracts
=========

Registry contracts that run against an injected `eventreg.db.KV` store.

- `contracts.events` : the Event registry (create/read/update/delete, list,
  count, positional access).
"""
