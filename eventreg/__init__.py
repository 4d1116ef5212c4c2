"""
Event registry core package.

This package provides the substrate the event registry runs on: the durable
key-value store, the canonical codec, record types, configuration, logging
and the error hierarchy. The registry itself lives in `contracts.events`.

Only re-exports the version here to keep import-time side effects near zero.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
