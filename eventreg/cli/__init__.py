"""
eventreg.cli
============

Typer application exposing the registry operations. See `eventreg.cli.main`.
"""

from .main import app, main

__all__ = ["app", "main"]
