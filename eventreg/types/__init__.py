"""
eventreg.types
==============

Domain records shared by the registry, the CLI and the tests.
"""

from .event import (
    SYMBOL_MAX_LEN,
    U32_MAX,
    U64_MAX,
    Event,
    Status,
    check_text,
    check_u32,
    check_u64,
    is_symbol,
)

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
