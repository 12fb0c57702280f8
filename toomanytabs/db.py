from __future__ import annotations

import sqlite3

import psycopg
from psycopg.rows import dict_row

from .config import Settings


def connect_sqlite(path: str) -> sqlite3.Connection:
    """
    Open the single shared SQLite connection.
    Autocommit mode, rows as sqlite3.Row, usable from the request thread pool
    (callers serialize access themselves).
    """
    conn = sqlite3.connect(
        path,
        check_same_thread=False,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row
    return conn


def connect_postgres(conninfo: str) -> psycopg.Connection:
    """Open a PostgreSQL connection returning rows as dicts, in autocommit mode."""
    return psycopg.connect(conninfo, autocommit=True, row_factory=dict_row)


def describe(settings: Settings) -> str:
    if settings.backend == "postgres":
        return f"postgres://{settings.pg_host}:{settings.pg_port}/{settings.pg_database}"
    return settings.sqlite_path()
