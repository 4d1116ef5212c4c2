"""
eventreg.errors
---------------

A small, consistent error system for the registry and its substrate.

Design goals
------------
- One root `RegistryError` with machine-friendly `code` and optional `data`.
- Concrete subclasses for the domains we touch (config, db, codec, input, state).
- Safe JSON representation (`to_dict`) suitable for logs and the CLI.
- Clear separation of *retryable* vs *permanent* failures.

Absence is never an error here: lookups of unknown IDs return None and
mutations of unknown IDs are no-ops. These classes cover the cases where the
registry genuinely cannot proceed.

This module uses only stdlib to avoid import-time dependency cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar


class RegistryErrorCode(str, Enum):
    # Config / environment
    CONFIG = "EVREG/CONFIG"

    # Encoding / decoding
    SERIALIZATION = "EVREG/SERIALIZATION"
    DESERIALIZATION = "EVREG/DESERIALIZATION"

    # DB / storage
    DB = "EVREG/DB"

    # Registry
    INVALID_INPUT = "EVREG/INVALID_INPUT"
    COUNTER_OVERFLOW = "EVREG/COUNTER_OVERFLOW"
    STATE_INVARIANT = "EVREG/STATE_INVARIANT"


@dataclass(eq=False)
class RegistryError(Exception):
    """
    Root error for registry components.

    Attributes
    ----------
    code: str
        Machine-stable error code (see RegistryErrorCode).
    message: str
        Human hint suitable for logs.
    data: dict
        Optional machine data (ids, sizes, field names). JSON-serializable.
    retryable: bool
        Whether the operation may succeed on retry without changing inputs.
    cause: Optional[BaseException]
        Wrapped original exception; not included in equality comparison.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    retryable: bool = False
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__(f"{_code_str(self.code)}: {self.message}")

    def with_context(self, **ctx: Any) -> "RegistryError":
        """Return a copy with extra context merged into `data`."""
        err = _clone(self)
        err.data = {**self.data, **_jsonmap(ctx)}
        return err

    def with_cause(self, exc: BaseException) -> "RegistryError":
        """Return a copy with `exc` attached as the cause."""
        err = _clone(self)
        err.cause = exc
        return err

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """JSON-safe shape suitable for logs and CLI output."""
        out = {
            "code": _code_str(self.code),
            "message": self.message,
            "data": _coerce_json(self.data),
            "retryable": self.retryable,
        }
        if include_cause and self.cause is not None:
            out["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return out

    def __str__(self) -> str:  # pragma: no cover - human formatting
        parts = [f"{_code_str(self.code)}: {self.message}"]
        if self.data:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.data.items())
            parts.append(f"[{preview}]")
        return " ".join(parts)


class ConfigError(RegistryError):
    def __init__(self, message="invalid configuration", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.CONFIG,
            message=message,
            data=_jsonmap(data),
            retryable=False,
        )


class SerializationError(RegistryError):
    def __init__(self, message="serialization failed", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.SERIALIZATION, message=message, data=_jsonmap(data)
        )


class DeserializationError(RegistryError):
    def __init__(self, message="deserialization failed", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.DESERIALIZATION,
            message=message,
            data=_jsonmap(data),
        )


class DatabaseError(RegistryError):
    def __init__(
        self, message="database error", retryable: bool = True, **data: Any
    ) -> None:
        super().__init__(
            code=RegistryErrorCode.DB,
            message=message,
            data=_jsonmap(data),
            retryable=retryable,
        )


class InvalidInput(RegistryError):
    def __init__(self, message="invalid input", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.INVALID_INPUT,
            message=message,
            data=_jsonmap(data),
            retryable=False,
        )


class CounterOverflow(RegistryError):
    def __init__(self, counter: int, limit: int) -> None:
        super().__init__(
            code=RegistryErrorCode.COUNTER_OVERFLOW,
            message="event counter exhausted",
            data={"counter": counter, "limit": limit},
            retryable=False,
        )


class StateInvariant(RegistryError):
    def __init__(self, message="state invariant broken", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.STATE_INVARIANT,
            message=message,
            data=_jsonmap(data),
            retryable=False,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

T = TypeVar("T", bound=RegistryError)


def wrap(exc: BaseException, *, as_: Type[T], **ctx: Any) -> RegistryError:
    """
    Wrap any exception into a RegistryError subclass, attaching context.
    If `exc` is already a RegistryError, returns a context-enriched copy.
    """
    if isinstance(exc, RegistryError):
        return exc.with_context(**ctx)
    err = as_(str(exc) or type(exc).__name__, **ctx)  # type: ignore[call-arg]
    return err.with_cause(exc)


def _clone(err: RegistryError) -> RegistryError:
    # Subclasses take bespoke __init__ signatures; copy state without re-running them.
    new = err.__class__.__new__(err.__class__)
    new.__dict__.update(err.__dict__)
    new.data = dict(err.data)
    Exception.__init__(new, *err.args)
    return new


def _code_str(code: Any) -> str:
    return code.value if isinstance(code, Enum) else str(code)


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    # Keep JSON primitives; stringify the rest; hex-encode bytes.
    if isinstance(v, Enum):
        return v.value
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).hex()
    if isinstance(v, (list, tuple)):
        return [_coerce_json(i) for i in v]
    if isinstance(v, dict):
        return {str(k): _coerce_json(i) for k, i in v.items()}
    return str(v)


def _preview(v: Any, limit: int = 96) -> str:
    s = str(_coerce_json(v))
    return s if len(s) <= limit else s[:limit] + "…"


__all__ = [
    "RegistryErrorCode",
    "RegistryError",
    "ConfigError",
    "SerializationError",
    "DeserializationError",
    "DatabaseError",
    "InvalidInput",
    "CounterOverflow",
    "StateInvariant",
    "wrap",
]
