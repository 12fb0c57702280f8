from __future__ import annotations

# Settings resolution order:
# 1) environment variables TMT_* (highest priority)
# 2) config.yaml at the project root, or the file named by TMT_CONFIG
# 3) built-in defaults: SQLite under ~/.tmt, listener 0.0.0.0:9999
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

BACKENDS = ("sqlite", "postgres")

# yaml key -> environment variable
_ENV_KEYS = {
    "backend": "TMT_BACKEND",
    "db_path": "TMT_DB_PATH",
    "db_dir": "TMT_DB_DIR",
    "pg_host": "TMT_PG_HOST",
    "pg_port": "TMT_PG_PORT",
    "pg_user": "TMT_PG_USER",
    "pg_password": "TMT_PG_PASSWORD",
    "pg_database": "TMT_PG_DATABASE",
    "host": "TMT_HOST",
    "port": "TMT_PORT",
    "addr": "TMT_ADDR",
    "templates_dir": "TMT_TEMPLATES_DIR",
    "log_level": "TMT_LOG_LEVEL",
}


def folder_path() -> str:
    return os.path.join(str(Path.home()), ".tmt")


@dataclass(frozen=True)
class Settings:
    backend: str = "sqlite"
    db_dir: str = ""
    db_path: str | None = None
    pg_host: str = "localhost"
    pg_port: int = 5432
    pg_user: str = ""
    pg_password: str = ""
    pg_database: str = "toomanytabs"
    host: str = "0.0.0.0"
    port: int = 9999
    addr: str | None = None
    templates_dir: str = os.path.join(_PACKAGE_DIR, "templates")
    log_level: str = "INFO"

    def sqlite_path(self) -> str:
        """Database file location; the parent directory is created if missing."""
        path = os.path.expanduser(self.db_path or os.path.join(self.db_dir or folder_path(), "toomanytabs.db"))
        dirn = os.path.dirname(path) or "."
        os.makedirs(dirn, exist_ok=True)
        return path

    def pg_conninfo(self) -> str:
        parts = {
            "host": self.pg_host,
            "port": str(self.pg_port),
            "user": self.pg_user,
            "password": self.pg_password,
            "dbname": self.pg_database,
        }
        return " ".join(f"{k}={_conninfo_value(v)}" for k, v in parts.items() if v)


def _conninfo_value(v: str) -> str:
    # libpq quoting: single quotes, backslash-escaped
    if v and not any(c in v for c in " '\\"):
        return v
    return "'" + v.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _read_config_yaml(path: str | None = None) -> dict:
    cfg_path = path or os.environ.get("TMT_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"{cfg_path}: expected a mapping at top level")
    out = {}
    for k in _ENV_KEYS:
        v = cfg.get(k)
        if v is None:
            continue
        if isinstance(v, str):
            v = v.strip()
            if not v:
                continue
        out[k] = v
    return out


def load_settings(path: str | None = None) -> Settings:
    values = _read_config_yaml(path)
    for key, env in _ENV_KEYS.items():
        v = os.environ.get(env)
        if v:
            values[key] = v

    for key in ("pg_port", "port"):
        if key in values:
            try:
                values[key] = int(values[key])
            except (TypeError, ValueError) as e:
                raise ValueError(f"{key} must be an integer, got {values[key]!r}") from e

    backend = str(values.get("backend", "sqlite")).lower()
    if backend not in BACKENDS:
        raise ValueError(f"unknown backend {backend!r}; expected one of {', '.join(BACKENDS)}")
    values["backend"] = backend
    values = {k: (v if k in ("pg_port", "port") else str(v)) for k, v in values.items()}

    settings = Settings(**values)
    logger.debug("settings loaded: backend=%s port=%s", settings.backend, settings.port)
    return settings
