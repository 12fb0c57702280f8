"""PostgreSQL flavour of entry_repo: same functions, psycopg placeholders."""
from typing import List, Optional

from psycopg import Connection

from ..models import DbEntry, Entry

# One statement per execute() call.
DDL = (
    """
    CREATE TABLE IF NOT EXISTS entries (
        id SERIAL PRIMARY KEY,
        url TEXT NOT NULL DEFAULT '',
        title TEXT NOT NULL DEFAULT '',
        notes TEXT NOT NULL DEFAULT '',
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE OR REPLACE FUNCTION entries_set_updated_at() RETURNS trigger AS $$
    BEGIN
        NEW.updated_at := now();
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """,
    "DROP TRIGGER IF EXISTS update_updated_trigger ON entries",
    """
    CREATE TRIGGER update_updated_trigger
    BEFORE INSERT ON entries
    FOR EACH ROW EXECUTE FUNCTION entries_set_updated_at()
    """,
)


def ensure_schema(conn: Connection):
    for stmt in DDL:
        conn.execute(stmt)


def list_all(conn: Connection) -> List[DbEntry]:
    rows = conn.execute(
        "SELECT id, url, title, notes, created_at, updated_at FROM entries "
        "ORDER BY created_at DESC, id DESC"
    ).fetchall()
    return [DbEntry.from_row(r) for r in rows]


def get_one(conn: Connection, entry_id: int) -> Optional[DbEntry]:
    row = conn.execute(
        "SELECT id, url, title, notes, created_at, updated_at FROM entries WHERE id = %s",
        (entry_id,),
    ).fetchone()
    return DbEntry.from_row(row) if row else None


def create(conn: Connection, data: Entry) -> int:
    row = conn.execute(
        "INSERT INTO entries (url, title, notes) VALUES (%s, %s, %s) RETURNING id",
        (data.url, data.title, data.notes),
    ).fetchone()
    return int(row["id"])


def update(conn: Connection, entry_id: int, data: Entry) -> int:
    cur = conn.execute(
        "UPDATE entries SET url = %s, title = %s, notes = %s WHERE id = %s",
        (data.url, data.title, data.notes, entry_id),
    )
    return cur.rowcount


def delete(conn: Connection, entry_id: int) -> int:
    cur = conn.execute("DELETE FROM entries WHERE id = %s", (entry_id,))
    return cur.rowcount
