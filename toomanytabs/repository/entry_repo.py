from sqlite3 import Connection
from typing import List, Optional

from ..models import DbEntry, Entry

# updated_at is only touched on insert; UPDATE leaves it alone.
DDL = """
CREATE TABLE IF NOT EXISTS entries (
    id INTEGER PRIMARY KEY,
    url TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL DEFAULT '',
    notes TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);
DROP TRIGGER IF EXISTS update_updated_trigger;
CREATE TRIGGER update_updated_trigger
AFTER INSERT ON entries
BEGIN
    UPDATE entries SET updated_at = strftime('%Y-%m-%d %H:%M:%f', 'now') WHERE id = NEW.id;
END;
"""


def ensure_schema(conn: Connection):
    conn.executescript(DDL)


def list_all(conn: Connection) -> List[DbEntry]:
    rows = conn.execute(
        "SELECT id, url, title, notes, created_at, updated_at FROM entries "
        "ORDER BY created_at DESC, id DESC"
    ).fetchall()
    return [DbEntry.from_row(r) for r in rows]


def get_one(conn: Connection, entry_id: int) -> Optional[DbEntry]:
    row = conn.execute(
        "SELECT id, url, title, notes, created_at, updated_at FROM entries WHERE id=?",
        (entry_id,),
    ).fetchone()
    return DbEntry.from_row(row) if row else None


def create(conn: Connection, data: Entry) -> int:
    cur = conn.execute(
        "INSERT INTO entries(url, title, notes) VALUES(?, ?, ?)",
        (data.url, data.title, data.notes),
    )
    return int(cur.lastrowid)


def update(conn: Connection, entry_id: int, data: Entry) -> int:
    cur = conn.execute(
        "UPDATE entries SET url=?, title=?, notes=? WHERE id=?",
        (data.url, data.title, data.notes, entry_id),
    )
    return cur.rowcount


def delete(conn: Connection, entry_id: int) -> int:
    cur = conn.execute("DELETE FROM entries WHERE id=?", (entry_id,))
    return cur.rowcount
