"""
eventreg.logging
----------------

Structured logging on top of stdlib `logging`:

- JSON lines (services, log files) or a one-line text form (colored on a TTY)
- Context-local fields via `contextvars`: `bind(...)` and `trace_scope()`
  stamp every record emitted in the current context (namespace, trace_id, ...)
- Call-site fields via `extra={...}` (e.g. event_id, op)

Usage
-----
    from eventreg import logging as elog

    elog.configure(json=False, level="INFO")  # once at process start
    log = elog.get_logger("contracts.events")

    with elog.trace_scope():
        log.info("event created", extra={"event_id": 1, "op": "create"})
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import sys
import threading
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

# ----------------------------
# Context
# ----------------------------

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_LOG_CONTEXT", default={})

# Rendered first (in this order) by the text formatter.
DEFAULT_CONTEXT_KEYS = ("trace_id", "namespace", "op")

# Attributes every LogRecord carries; anything else came from `extra=`.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


def context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    """Merge fields into the active context."""
    _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **{k: _jsonable(v) for k, v in fields.items()}})


@contextmanager
def trace_scope(trace_id: Optional[str] = None) -> Iterator[str]:
    """Bind a trace_id (random if not given) for the scope; restore context on exit."""
    tid = trace_id or uuid.uuid4().hex[:12]
    token = _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), "trace_id": tid})
    try:
        yield tid
    finally:
        _LOG_CONTEXT.reset(token)


# ----------------------------
# Formatters
# ----------------------------

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_RESET = "\x1b[0m"
_DIM = "\x1b[90m"
_COLORS = {
    logging.DEBUG: _DIM,
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[1m\x1b[35m",
}


def _now() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _is_tty(stream: Any) -> bool:
    try:
        return bool(stream.isatty()) and "NO_COLOR" not in os.environ
    except (AttributeError, ValueError):
        return False


def _jsonable(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).hex()
    return str(v)


def _fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Context fields overlaid with the record's `extra=` fields."""
    out = context()
    for k, v in record.__dict__.items():
        if k not in _RECORD_ATTRS and not k.startswith("_"):
            out[k] = _jsonable(v)
    return out


def _exc_text(record: logging.LogRecord) -> Optional[str]:
    if not record.exc_info:
        return None
    return "".join(traceback.format_exception(*record.exc_info)).rstrip()


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _now(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "pid": os.getpid(),
            "tid": threading.get_ident(),
        }
        for k, v in _fields(record).items():
            payload.setdefault(k, v)
        err = _exc_text(record)
        if err:
            payload["err"] = err
        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """
    One line per record:
      2026-01-05T12:34:56.789+00:00 | INFO  | contracts.events | trace_id=ab12 namespace=ev event_id=1 | event created
    """

    def __init__(self, stream: Any):
        super().__init__()
        self._color = _is_tty(stream)

    def format(self, record: logging.LogRecord) -> str:
        fields = _fields(record)
        ordered = [k for k in DEFAULT_CONTEXT_KEYS if k in fields]
        ordered += [k for k in fields if k not in DEFAULT_CONTEXT_KEYS]
        kv = " ".join(f"{k}={fields[k]}" for k in ordered if fields[k] is not None)

        level = f"{record.levelname:<5}"
        ts = _now()
        if self._color:
            level = f"{_COLORS.get(record.levelno, '')}{level}{_RESET}"
            ts = f"{_DIM}{ts}{_RESET}"

        parts = [ts, level, record.name]
        if kv:
            parts.append(kv)
        parts.append(record.getMessage())
        line = " | ".join(parts)

        err = _exc_text(record)
        return f"{line}\n{err}" if err else line


# ----------------------------
# Setup
# ----------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int = "INFO",
    stream: Any = None,
    file_path: Optional[Path | str] = None,
) -> None:
    """
    Replace the root logger's handlers.

    json      : None picks EVREG_LOG_FORMAT, else JSON unless `stream` is a TTY.
    level     : minimum level (name or number).
    stream    : console stream (default: stderr).
    file_path : also append JSON lines to this file.
    """
    stream = stream if stream is not None else sys.stderr
    use_json = _decide_json(json, stream)
    lvl = level if isinstance(level, int) else _LEVELS.get(level.strip().upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setFormatter(JSONFormatter() if use_json else TextFormatter(stream))
    root.addHandler(console)

    if file_path:
        p = Path(file_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)


def configure_from_config(cfg: Any, *, stream: Any = None) -> None:
    """Configure logging from an `eventreg.config.Config`."""
    bind(namespace=cfg.registry.namespace)
    configure(
        json=_format_to_json(cfg.log.format),
        level=cfg.log.level,
        stream=stream,
        file_path=cfg.log.file,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "eventreg")


def _format_to_json(fmt: Optional[str]) -> Optional[bool]:
    f = (fmt or "").strip().lower()
    if f == "json":
        return True
    if f == "text":
        return False
    return None


def _decide_json(json_flag: Optional[bool], stream: Any) -> bool:
    if json_flag is not None:
        return json_flag
    env = _format_to_json(os.environ.get("EVREG_LOG_FORMAT"))
    if env is not None:
        return env
    return not _is_tty(stream)


__all__ = [
    "bind",
    "context",
    "trace_scope",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "configure_from_config",
    "get_logger",
]
