"""
Version helpers for the event registry.

- Exposes __version__ (PEP 440-compatible when possible).
- Resolution order:
    1) EVREG_VERSION env var (authoritative override)
    2) installed distribution metadata ("eventreg")
    3) DEFAULT_VERSION

This module has **no external dependencies** and is safe to import very early.
"""

from __future__ import annotations

import os
from importlib import metadata

# Project default if neither env nor package metadata are available
DEFAULT_VERSION = "0.1.0"

DIST_NAME = "eventreg"


def resolve_version() -> str:
    """
    Determine the version string in priority:
      1) EVREG_VERSION environment variable (verbatim)
      2) installed distribution metadata
      3) DEFAULT_VERSION
    """
    env = os.getenv("EVREG_VERSION")
    if env:
        return env.strip()
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return DEFAULT_VERSION


# Compute at import; cheap & side-effect free
__version__ = resolve_version()


if __name__ == "__main__":
    print(__version__)
