"""
Schema v1 for the audit log.

Tables:
- `events`: append-only `Event` records in emission order
"""

from typing import Optional

from tinydb import Query

from rewarder.models import Event
from rewarder.storage.db import DB

NAMESPACE = "audit"
SCHEMA_VERSION = 1

Row = Query()


def _table(db: DB):
    return db.versioned_table(NAMESPACE, SCHEMA_VERSION, "events")


def append_event(db: DB, event: Event) -> None:
    _table(db).insert(event.model_dump())


def list_events(db: DB, name: Optional[str] = None) -> list[Event]:
    table = _table(db)
    rows = table.all() if name is None else table.search(Row.name == name)
    return [Event(**row) for row in rows]
