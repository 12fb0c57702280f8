from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from ipaddress import IPv4Address, IPv6Address
from typing import Any, List, Mapping, Union

from pydantic import BaseModel, ConfigDict

from .errors import DecodeError

IpAddr = Union[IPv4Address, IPv6Address]


class Entry(BaseModel):
    """User supplied bookmark data; empty strings are allowed."""

    model_config = ConfigDict(strict=True)

    url: str
    title: str
    notes: str


def _parse_ts(name: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise DecodeError(f"column {name!r}: bad timestamp {value!r}") from e
    else:
        raise DecodeError(f"column {name!r}: expected timestamp, got {type(value).__name__}")
    # SQLite stores naive UTC text
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _column(row: Mapping[str, Any], name: str) -> Any:
    try:
        return row[name]
    except (KeyError, IndexError) as e:
        raise DecodeError(f"missing column {name!r}") from e


@dataclass(frozen=True)
class DbEntry:
    id: int
    url: str
    title: str
    notes: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DbEntry":
        """Map one raw row (sqlite3.Row or a psycopg dict row) to a DbEntry.

        Raises DecodeError when a column is missing or has an unexpected shape.
        """
        entry_id = _column(row, "id")
        if isinstance(entry_id, bool) or not isinstance(entry_id, int):
            raise DecodeError(f"column 'id': expected int, got {type(entry_id).__name__}")
        texts = {}
        for name in ("url", "title", "notes"):
            value = _column(row, name)
            if not isinstance(value, str):
                raise DecodeError(f"column {name!r}: expected str, got {type(value).__name__}")
            texts[name] = value
        return cls(
            id=entry_id,
            created_at=_parse_ts("created_at", _column(row, "created_at")),
            updated_at=_parse_ts("updated_at", _column(row, "updated_at")),
            **texts,
        )

    def to_dict(self) -> dict:
        out = asdict(self)
        out["created_at"] = self.created_at.isoformat()
        out["updated_at"] = self.updated_at.isoformat()
        return out


# Template payloads


@dataclass(frozen=True)
class Addr:
    addr: IpAddr


@dataclass(frozen=True)
class SingleEntry:
    entry: DbEntry
    addr: IpAddr


@dataclass(frozen=True)
class ManyEntries:
    entries: List[DbEntry]
    addr: IpAddr


def template_context(payload) -> dict:
    """Shallow field mapping, so templates see DbEntry objects rather than dicts."""
    return {f.name: getattr(payload, f.name) for f in fields(payload)}
