"""
Logging tests
- JSON formatter emits context and extras
- Text formatter renders a single line without color on non-TTY streams
- configure / configure_from_config install handlers as requested
"""
from __future__ import annotations

import io
import json
import logging

import pytest

from eventreg import config as cfgmod
from eventreg import logging as elog


@pytest.fixture(autouse=True)
def restore_root():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    elog._LOG_CONTEXT.set({})
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        if h not in saved_handlers:
            h.close()
    for h in saved_handlers:
        root.addHandler(h)
    root.setLevel(saved_level)
    elog._LOG_CONTEXT.set({})


def _record(msg="event created", **extra):
    rec = logging.LogRecord("contracts.events", logging.INFO, __file__, 1, msg, (), None)
    for k, v in extra.items():
        setattr(rec, k, v)
    return rec


def test_json_formatter_context_and_extras():
    with elog.trace_scope("abc123"):
        elog.bind(component="test")
        line = elog.JSONFormatter().format(_record(event_id=1, op="create", raw=b"\x01"))
    out = json.loads(line)
    assert out["msg"] == "event created"
    assert out["level"] == "INFO"
    assert out["logger"] == "contracts.events"
    assert out["trace_id"] == "abc123"
    assert out["component"] == "test"
    assert out["event_id"] == 1
    assert out["op"] == "create"
    assert out["raw"] == "01"
    # scope restored
    assert "trace_id" not in elog.context()


def test_text_formatter_plain():
    elog.bind(namespace="ev")
    line = elog.TextFormatter(io.StringIO()).format(_record(event_id=2))
    assert "\x1b[" not in line
    assert "| INFO  | contracts.events | namespace=ev event_id=2 | event created" in line


def test_bind_merges():
    elog.bind(a=1, b=b"\x02")
    elog.bind(a=3)
    assert elog.context() == {"a": 3, "b": "02"}


def test_trace_scope_generates_and_restores():
    elog.bind(namespace="ev")
    with elog.trace_scope() as tid:
        assert len(tid) == 12
        assert elog.context() == {"namespace": "ev", "trace_id": tid}
        with elog.trace_scope("inner") as inner:
            assert inner == "inner"
            assert elog.context()["trace_id"] == "inner"
        assert elog.context()["trace_id"] == tid
    assert elog.context() == {"namespace": "ev"}


def test_configure_json_stream():
    buf = io.StringIO()
    elog.configure(json=True, level="DEBUG", stream=buf)
    elog.get_logger("contracts.events").debug("hello", extra={"event_id": 3})
    out = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert out["msg"] == "hello"
    assert out["event_id"] == 3


def test_configure_level_filters():
    buf = io.StringIO()
    elog.configure(json=False, level="WARNING", stream=buf)
    elog.get_logger().info("quiet")
    elog.get_logger().warning("loud")
    text = buf.getvalue()
    assert "quiet" not in text
    assert "loud" in text


def test_configure_from_config_with_file(tmp_path, monkeypatch):
    monkeypatch.setenv("EVREG_DATA_DIR", str(tmp_path))
    log_file = tmp_path / "logs" / "ev.jsonl"
    cfg = cfgmod.load(db={"uri": "memory://"}, log={"level": "INFO", "format": "text", "file": str(log_file)})
    buf = io.StringIO()
    elog.configure_from_config(cfg, stream=buf)
    elog.get_logger("contracts.events").info("event deleted", extra={"event_id": 9})
    for h in logging.getLogger().handlers:
        h.flush()

    assert "namespace=ev" in buf.getvalue()
    lines = log_file.read_text(encoding="utf-8").strip().splitlines()
    rec = json.loads(lines[-1])
    assert rec["msg"] == "event deleted"
    assert rec["namespace"] == "ev"
    assert rec["event_id"] == 9

