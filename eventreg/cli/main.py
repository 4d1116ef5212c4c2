"""
eventreg - command-line access to an Event registry store.

Commands:
  eventreg create NAME DESCRIPTION START END     prints the new id
  eventreg read ID                               event as JSON
  eventreg update ID NAME DESCRIPTION START END [--status Active|Completed]
  eventreg delete ID
  eventreg list                                  JSON array, ascending id
  eventreg count                                 events ever created
  eventreg by-index INDEX                        event at id INDEX+1

Global options:
  --db TEXT              Store URI (sqlite:///path/to/events.db | memory://)
  --config PATH          TOML/JSON config file
  --log-level TEXT       DEBUG | INFO | WARNING | ERROR
  --log-format TEXT      json | text
  --version              print the version and exit

Exit codes: 0 ok, 1 not found, 2 registry/config error.

Examples:
  eventreg --db sqlite:///./events.db create Launch Kickoff 100 200
  eventreg --db sqlite:///./events.db list
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import typer

from contracts.events import EventRegistry, bind

from .. import __version__
from .. import config as config_mod
from ..db import open_kv
from ..errors import RegistryError
from ..logging import configure_from_config, get_logger, trace_scope
from ..types import Event

app = typer.Typer(
    name="eventreg",
    help="Event registry command-line interface",
    no_args_is_help=True,
    add_completion=False,
)

log = get_logger("eventreg.cli")


class GlobalContext:
    def __init__(self):
        self.config: Optional[config_mod.Config] = None


_ctx = GlobalContext()


def _fail(err: RegistryError) -> None:
    typer.echo(f"error: {err.to_dict()['code']}: {err.message}", err=True)
    raise typer.Exit(2)


@contextmanager
def _registry() -> Iterator[EventRegistry]:
    """Open the configured store, yield a registry over it, close on exit."""
    cfg = _ctx.config
    with trace_scope():
        try:
            cfg.ensure_dirs()
            with open_kv(cfg.db.uri, timeout=cfg.db.timeout) as kv:
                yield bind(
                    kv,
                    namespace=cfg.registry.namespace,
                    strict_symbols=cfg.registry.strict_symbols,
                )
        except RegistryError as e:
            log.debug("command failed", extra={"code": e.to_dict()["code"], "retryable": e.retryable})
            _fail(e)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"eventreg {__version__}")
        raise typer.Exit()


def _pretty(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _echo_event(ev: Optional[Event]) -> None:
    if ev is None:
        typer.echo("not found", err=True)
        raise typer.Exit(1)
    typer.echo(_pretty(ev.to_json()))


@app.callback()
def main_callback(
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="Store URI (sqlite:///path/to/events.db or memory://)",
        envvar="EVREG_DB_URI",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to a TOML or JSON config file",
        envvar="EVREG_CONFIG",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    log_format: Optional[str] = typer.Option(
        None,
        "--log-format",
        help="Log format (json or text)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Print the version and exit",
        callback=_print_version,
        is_eager=True,
    ),
) -> None:
    """
    Manage Event records in a registry store.

    Configuration is resolved in this order (highest to lowest priority):
      1. Command-line flags (--db, --log-level, ...)
      2. Environment variables (EVREG_DB_URI, EVREG_LOG_LEVEL, ...)
      3. Config file (--config)
      4. Built-in defaults (sqlite file under the user data dir)
    """
    overrides: Dict[str, Dict[str, Any]] = {}
    if db:
        overrides["db"] = {"uri": db}
    log_over: Dict[str, Any] = {}
    if log_level:
        log_over["level"] = log_level
    if log_format:
        log_over["format"] = log_format
    if log_over:
        overrides["log"] = log_over

    try:
        cfg = config_mod.load(config, **overrides)
    except RegistryError as e:
        _fail(e)
    configure_from_config(cfg)
    _ctx.config = cfg


@app.command()
def create(
    name: str = typer.Argument(..., help="Event name"),
    description: str = typer.Argument(..., help="Event description"),
    start: int = typer.Argument(..., help="Start date (u64)"),
    end: int = typer.Argument(..., help="End date (u64)"),
) -> None:
    """Create an Active event and print its id."""
    with _registry() as reg:
        event_id = reg.create_event(name, description, start, end)
    typer.echo(str(event_id))


@app.command()
def read(event_id: int = typer.Argument(..., metavar="ID", help="Event id")) -> None:
    """Print an event as JSON."""
    with _registry() as reg:
        ev = reg.read_event(event_id)
    _echo_event(ev)


@app.command()
def update(
    event_id: int = typer.Argument(..., metavar="ID", help="Event id"),
    name: str = typer.Argument(..., help="New name"),
    description: str = typer.Argument(..., help="New description"),
    start: int = typer.Argument(..., help="New start date (u64)"),
    end: int = typer.Argument(..., help="New end date (u64)"),
    status: str = typer.Option("Active", "--status", help="Active or Completed"),
) -> None:
    """Replace an event's fields. Unknown ids are ignored."""
    with _registry() as reg:
        reg.update_event(event_id, name, description, start, end, status)


@app.command()
def delete(event_id: int = typer.Argument(..., metavar="ID", help="Event id")) -> None:
    """Delete an event. Its id is never reused."""
    with _registry() as reg:
        reg.delete_event(event_id)


@app.command("list")
def list_() -> None:
    """Print all live events as a JSON array."""
    with _registry() as reg:
        events = reg.list_events()
    typer.echo(_pretty([ev.to_json() for ev in events]))


@app.command()
def count() -> None:
    """Print the number of events ever created."""
    with _registry() as reg:
        n = reg.get_event_count()
    typer.echo(str(n))


@app.command("by-index")
def by_index(index: int = typer.Argument(..., help="Position; resolves to id INDEX+1")) -> None:
    """Print the event at INDEX (the event with id INDEX+1)."""
    with _registry() as reg:
        ev = reg.get_event_by_index(index)
    _echo_event(ev)


def main() -> None:
    """Entry point for the eventreg CLI."""
    app()


if __name__ == "__main__":
    main()
