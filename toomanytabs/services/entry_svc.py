from __future__ import annotations

import logging
from typing import List, Optional

from ..errors import InvariantViolation, NotFound
from ..logs import LogContext
from ..models import DbEntry, Entry
from ..storage import EntryStore

logger = logging.getLogger(__name__)


def _check_affected(entry_id: int, affected: int, verb: str):
    if affected == 1:
        return
    if affected == 0:
        raise NotFound("entry not found")
    logger.error("%s touched %d rows for id=%s", verb, affected, entry_id)
    raise InvariantViolation(f"multiple entries {verb}")


def _snapshot(store: EntryStore, entry_id: int) -> Optional[dict]:
    entry = store.get_one(entry_id)
    return entry.to_dict() if entry else None


def list_entries(store: EntryStore) -> List[DbEntry]:
    return store.list_all()


def get_entry(store: EntryStore, entry_id: int) -> DbEntry:
    entry = store.get_one(entry_id)
    if entry is None:
        raise NotFound("entry not found")
    return entry


def create_entry(store: EntryStore, data: Entry, log: LogContext) -> int:
    log.set_payload(data.model_dump())
    new_id = store.create(data)
    log.set_entity("entry", new_id)
    log.set_after(_snapshot(store, new_id))
    return new_id


def update_entry(store: EntryStore, entry_id: int, data: Entry, log: LogContext):
    log.set_entity("entry", entry_id)
    log.set_payload(data.model_dump())
    log.set_before(_snapshot(store, entry_id))
    affected = store.update(entry_id, data)
    _check_affected(entry_id, affected, "updated")
    log.set_after(_snapshot(store, entry_id))


def delete_entry(store: EntryStore, entry_id: int, log: LogContext):
    log.set_entity("entry", entry_id)
    log.set_before(_snapshot(store, entry_id))
    affected = store.delete(entry_id)
    _check_affected(entry_id, affected, "deleted")
