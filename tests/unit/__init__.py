"""
tests.unit
==========

Unit tests for the eventreg substrate: KV store, codec, types, config,
errors, logging and the CLI.
"""
