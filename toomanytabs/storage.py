"""Entry storage backends.

Both backends expose the same operations (``ensure_schema``, ``list_all``,
``get_one``, ``create``, ``update``, ``delete``) and raise only
``toomanytabs.errors`` kinds, so the HTTP layer never sees a driver exception.

- ``SqliteEntryStore`` owns one connection and serializes every call on a lock.
- ``PostgresEntryStore`` issues statements directly; psycopg serializes access
  to its connection internally.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol

import psycopg

from .config import Settings
from .db import connect_postgres, connect_sqlite
from .errors import ConnectivityError, ConstraintViolation, StorageError
from .models import DbEntry, Entry
from .repository import entry_repo, entry_repo_pg

logger = logging.getLogger(__name__)

# OverflowError: an int outside SQLite's 64-bit range failed to bind
_SQLITE_INPUT_ERRORS = (sqlite3.IntegrityError, sqlite3.InterfaceError, OverflowError)
_PG_INPUT_ERRORS = (psycopg.IntegrityError, psycopg.DataError)


class EntryStore(Protocol):
    def ensure_schema(self) -> None: ...
    def list_all(self) -> List[DbEntry]: ...
    def get_one(self, entry_id: int) -> Optional[DbEntry]: ...
    def create(self, data: Entry) -> int: ...
    def update(self, entry_id: int, data: Entry) -> int: ...
    def delete(self, entry_id: int) -> int: ...
    def close(self) -> None: ...


@contextmanager
def translate_sqlite_errors(op: str) -> Iterator[None]:
    try:
        yield
    except _SQLITE_INPUT_ERRORS as e:
        raise ConstraintViolation(f"{op}: {e}") from e
    except sqlite3.OperationalError as e:
        raise ConnectivityError(f"{op}: {e}") from e
    except sqlite3.Error as e:
        raise StorageError(f"{op}: {e}") from e


@contextmanager
def translate_pg_errors(op: str) -> Iterator[None]:
    try:
        yield
    except _PG_INPUT_ERRORS as e:
        raise ConstraintViolation(f"{op}: {e}") from e
    except psycopg.OperationalError as e:
        raise ConnectivityError(f"{op}: {e}") from e
    except psycopg.Error as e:
        raise StorageError(f"{op}: {e}") from e


class SqliteEntryStore:
    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path: str) -> "SqliteEntryStore":
        with translate_sqlite_errors("connect"):
            conn = connect_sqlite(path)
        logger.info("opened sqlite store at %s", path)
        return cls(conn)

    @contextmanager
    def _session(self, op: str) -> Iterator[sqlite3.Connection]:
        with self._lock, translate_sqlite_errors(op):
            yield self._conn

    def ensure_schema(self) -> None:
        with self._session("ensure_schema") as conn:
            entry_repo.ensure_schema(conn)

    def list_all(self) -> List[DbEntry]:
        with self._session("list_all") as conn:
            return entry_repo.list_all(conn)

    def get_one(self, entry_id: int) -> Optional[DbEntry]:
        with self._session("get_one") as conn:
            return entry_repo.get_one(conn, entry_id)

    def create(self, data: Entry) -> int:
        with self._session("create") as conn:
            return entry_repo.create(conn, data)

    def update(self, entry_id: int, data: Entry) -> int:
        with self._session("update") as conn:
            return entry_repo.update(conn, entry_id, data)

    def delete(self, entry_id: int) -> int:
        with self._session("delete") as conn:
            return entry_repo.delete(conn, entry_id)

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class PostgresEntryStore:
    def __init__(self, conn: psycopg.Connection):
        self._conn = conn

    @classmethod
    def open(cls, conninfo: str) -> "PostgresEntryStore":
        with translate_pg_errors("connect"):
            conn = connect_postgres(conninfo)
        logger.info("connected to postgres (%s)", conn.info.dbname)
        return cls(conn)

    def ensure_schema(self) -> None:
        with translate_pg_errors("ensure_schema"):
            entry_repo_pg.ensure_schema(self._conn)

    def list_all(self) -> List[DbEntry]:
        with translate_pg_errors("list_all"):
            return entry_repo_pg.list_all(self._conn)

    def get_one(self, entry_id: int) -> Optional[DbEntry]:
        with translate_pg_errors("get_one"):
            return entry_repo_pg.get_one(self._conn, entry_id)

    def create(self, data: Entry) -> int:
        with translate_pg_errors("create"):
            return entry_repo_pg.create(self._conn, data)

    def update(self, entry_id: int, data: Entry) -> int:
        with translate_pg_errors("update"):
            return entry_repo_pg.update(self._conn, entry_id, data)

    def delete(self, entry_id: int) -> int:
        with translate_pg_errors("delete"):
            return entry_repo_pg.delete(self._conn, entry_id)

    def close(self) -> None:
        self._conn.close()


def build_store(settings: Settings) -> EntryStore:
    """Open the configured backend and make sure the schema exists.

    Any failure here is fatal for the process.
    """
    if settings.backend == "postgres":
        store: EntryStore = PostgresEntryStore.open(settings.pg_conninfo())
    else:
        store = SqliteEntryStore.open(settings.sqlite_path())
    try:
        store.ensure_schema()
    except StorageError as e:
        store.close()
        raise ConnectivityError(f"schema setup failed: {e}") from e
    return store
