"""
Event registry configuration loader.

Goals
-----
- Zero external deps (stdlib only).
- Layered config with clear precedence:
    1) Explicit overrides passed to `load()` (highest)
    2) Environment variables (EVREG_*)
    3) Config file (TOML or JSON)
    4) Built-in defaults (lowest)
- Safe, typed dataclasses with validation.
- Sensible OS-specific defaults (XDG/APPDATA/~/Library).

Environment
-----------
  - EVREG_DATA_DIR         data directory (default: <os data root>/eventreg)
  - EVREG_LOGS_DIR         logs directory (default: <data_dir>/logs)
  - EVREG_DB_URI           sqlite:///path/to/events.db | memory:// | path/to/events.db
  - EVREG_DB_TIMEOUT       seconds a write waits on a locked store (default: 5)
  - EVREG_LOG_LEVEL        DEBUG | INFO | WARNING | ERROR
  - EVREG_LOG_FORMAT       json | text
  - EVREG_LOG_FILE         optional JSON log file
  - EVREG_NAMESPACE        storage key namespace (default: "ev")
  - EVREG_STRICT_SYMBOLS   bool; enforce symbol charset/length on names
"""

from __future__ import annotations

import json
import os
import platform
import re
import sys
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .db import parse_uri
from .errors import ConfigError

# ------------------------------
# Defaults & helpers
# ------------------------------

DEFAULT_DB_FILENAME = "events.db"
DEFAULT_NAMESPACE = "ev"
DEFAULT_DB_TIMEOUT = 5.0
DEFAULT_LOG_LEVEL = "INFO"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "text")
SECTIONS = ("paths", "db", "log", "registry")

_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_.\-]{1,32}$")


def _expand(p: str | Path) -> Path:
    return Path(p).expanduser().resolve()


def _os_default_data_root() -> Path:
    system = platform.system()
    if system == "Darwin":
        return _expand("~/Library/Application Support")
    if system == "Windows":
        appdata = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
        if appdata:
            return _expand(appdata)
        return _expand("~\\AppData\\Roaming")
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return _expand(xdg)
    return _expand("~/.local/share")


def _default_data_dir() -> Path:
    override = os.environ.get("EVREG_DATA_DIR")
    if override:
        return _expand(override)
    return _os_default_data_root() / "eventreg"


_TRUE = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE = frozenset({"0", "false", "f", "no", "n", "off", ""})


def _coerce_bool(value: Any, key: str) -> bool:
    """Accept a real bool or a boolean-looking string (env vars, hand-written files)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
    raise ConfigError("expected a boolean", key=key, value=value)


# ------------------------------
# Typed configuration model
# ------------------------------


@dataclass
class PathsConfig:
    data_dir: Path
    logs_dir: Path

    @staticmethod
    def defaults() -> "PathsConfig":
        root = _default_data_dir()
        return PathsConfig(data_dir=root, logs_dir=root / "logs")


@dataclass
class DBConfig:
    uri: str  # e.g., sqlite:////home/user/.local/share/eventreg/events.db
    timeout: float = DEFAULT_DB_TIMEOUT  # seconds a write waits on a locked file

    @staticmethod
    def sqlite_default(paths: PathsConfig) -> "DBConfig":
        return DBConfig(uri=f"sqlite:///{paths.data_dir / DEFAULT_DB_FILENAME}")

    @property
    def path(self) -> Optional[Path]:
        """Filesystem path of a file-backed store, None for in-memory ones."""
        backend, path = parse_uri(self.uri)
        return Path(path) if backend == "sqlite" else None

    @property
    def is_file(self) -> bool:
        return self.path is not None


@dataclass
class LogConfig:
    level: str = DEFAULT_LOG_LEVEL
    format: Optional[str] = None  # None: decide by TTY
    file: Optional[Path] = None


@dataclass
class RegistryConfig:
    namespace: str = DEFAULT_NAMESPACE
    strict_symbols: bool = False


@dataclass
class Config:
    paths: PathsConfig
    db: DBConfig
    log: LogConfig = field(default_factory=LogConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)

    def ensure_dirs(self) -> None:
        """Create directories the configured sqlite file and log file need."""
        db_path = self.db.path
        if db_path is not None:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        if self.log.file is not None:
            self.log.file.parent.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        # Path → str for JSON friendliness
        def _normalize(obj: Any) -> Any:
            if isinstance(obj, Path):
                return str(obj)
            if isinstance(obj, list):
                return [_normalize(i) for i in obj]
            if isinstance(obj, dict):
                return {k: _normalize(v) for k, v in obj.items()}
            return obj

        return _normalize(asdict(self))


# ------------------------------
# File loader (TOML / JSON)
# ------------------------------


def _load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError("config file not found", path=str(path))
    suffix = path.suffix.lower()
    try:
        with path.open("rb") as f:
            if suffix in {".toml", ".tml"}:
                return tomllib.load(f)
            if suffix == ".json":
                return json.load(f)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigError("config file is malformed", path=str(path)).with_cause(e)
    raise ConfigError("unsupported config format; use .toml or .json", path=str(path))


def _merge_dict(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Nested dict merge: values in b override a."""
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge_dict(out[k], v)
        else:
            out[k] = v
    return out


def _env_layer() -> Dict[str, Any]:
    env: Dict[str, Any] = {"paths": {}, "db": {}, "log": {}, "registry": {}}
    if "EVREG_DATA_DIR" in os.environ:
        env["paths"]["data_dir"] = os.environ["EVREG_DATA_DIR"]
    if "EVREG_LOGS_DIR" in os.environ:
        env["paths"]["logs_dir"] = os.environ["EVREG_LOGS_DIR"]
    if "EVREG_DB_URI" in os.environ:
        env["db"]["uri"] = os.environ["EVREG_DB_URI"].strip()
    if "EVREG_DB_TIMEOUT" in os.environ:
        env["db"]["timeout"] = os.environ["EVREG_DB_TIMEOUT"].strip()
    if "EVREG_LOG_LEVEL" in os.environ:
        env["log"]["level"] = os.environ["EVREG_LOG_LEVEL"].strip()
    if "EVREG_LOG_FORMAT" in os.environ:
        env["log"]["format"] = os.environ["EVREG_LOG_FORMAT"].strip()
    if "EVREG_LOG_FILE" in os.environ:
        env["log"]["file"] = os.environ["EVREG_LOG_FILE"]
    if "EVREG_NAMESPACE" in os.environ:
        env["registry"]["namespace"] = os.environ["EVREG_NAMESPACE"].strip()
    if "EVREG_STRICT_SYMBOLS" in os.environ:
        env["registry"]["strict_symbols"] = os.environ["EVREG_STRICT_SYMBOLS"]
    return {k: v for k, v in env.items() if v}


# ------------------------------
# Main loader
# ------------------------------


def load(config_file: Optional[str | Path] = None, **overrides: Any) -> Config:
    """
    Load the registry configuration.

    Precedence: overrides > env > file > defaults.

    Parameters
    ----------
    config_file : str | Path | None
        Optional path to a TOML or JSON file with keys:
          paths:    { data_dir, logs_dir }
          db:       { uri, timeout }
          log:      { level, format, file }
          registry: { namespace, strict_symbols }

    overrides : Any
        Keyword overrides, e.g. load(db={"uri": "memory://"})
    """
    paths = PathsConfig.defaults()
    base: Dict[str, Any] = {
        "paths": {"data_dir": str(paths.data_dir), "logs_dir": None},
        "db": {"uri": None, "timeout": DEFAULT_DB_TIMEOUT},
        "log": asdict(LogConfig()),
        "registry": asdict(RegistryConfig()),
    }

    if config_file:
        base = _merge_dict(base, _load_file(_expand(config_file)))
    base = _merge_dict(base, _env_layer())
    if overrides:
        base = _merge_dict(base, overrides)

    for section in SECTIONS:
        if not isinstance(base.get(section), dict):
            raise ConfigError(
                "config section must be a table", section=section, type=type(base.get(section)).__name__
            )

    try:
        data_dir = _expand(base["paths"]["data_dir"])
        logs_dir = base["paths"].get("logs_dir")
        paths = PathsConfig(
            data_dir=data_dir,
            logs_dir=_expand(logs_dir) if logs_dir else data_dir / "logs",
        )
        log_file = base["log"].get("file")
        cfg = Config(
            paths=paths,
            db=DBConfig(
                uri=base["db"]["uri"] if base["db"].get("uri") else DBConfig.sqlite_default(paths).uri,
                timeout=float(base["db"].get("timeout", DEFAULT_DB_TIMEOUT)),
            ),
            log=LogConfig(
                level=str(base["log"].get("level") or DEFAULT_LOG_LEVEL).upper(),
                format=base["log"].get("format"),
                file=_expand(log_file) if log_file else None,
            ),
            registry=RegistryConfig(
                namespace=str(base["registry"].get("namespace", DEFAULT_NAMESPACE)),
                strict_symbols=_coerce_bool(
                    base["registry"].get("strict_symbols", False), "registry.strict_symbols"
                ),
            ),
        )
    except (TypeError, KeyError, ValueError) as e:
        raise ConfigError("config has an unexpected shape").with_cause(e) from e

    _validate_config(cfg)
    return cfg


def _validate_db_uri(uri: str) -> None:
    if not isinstance(uri, str):
        raise ConfigError("DB URI must be a string", type=type(uri).__name__)
    # same grammar open_kv() accepts
    parse_uri(uri)


def _validate_config(cfg: Config) -> None:
    _validate_db_uri(cfg.db.uri)
    if cfg.db.timeout < 0:
        raise ConfigError("db timeout must be >= 0", timeout=cfg.db.timeout)
    if cfg.log.level not in LOG_LEVELS:
        raise ConfigError("unknown log level", level=cfg.log.level)
    if cfg.log.format is not None and cfg.log.format.lower() not in LOG_FORMATS:
        raise ConfigError("unknown log format", format=cfg.log.format)
    if not _NAMESPACE_RE.match(cfg.registry.namespace):
        raise ConfigError("namespace must match [A-Za-z0-9_.-]{1,32}", namespace=cfg.registry.namespace)


# ------------------------------
# CLI helper
# ------------------------------


def main(argv: List[str] | None = None) -> int:
    """
    CLI usage:

        python -m eventreg.config                      # load defaults/env; print JSON
        python -m eventreg.config path/to/config.toml  # load file; print JSON
    """
    argv = list(argv if argv is not None else sys.argv[1:])
    path = argv[0] if argv else None
    try:
        cfg = load(path)
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2
    print(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
