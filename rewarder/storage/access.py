"""
Schema v1 for role assignments.

Tables:
- `roles`: one row per (role, account) that currently holds the role
"""

from tinydb import Query

from rewarder.storage.db import DB

NAMESPACE = "access"
SCHEMA_VERSION = 1

Row = Query()


def _table(db: DB):
    return db.versioned_table(NAMESPACE, SCHEMA_VERSION, "roles")


def has_role(db: DB, role: str, account: str) -> bool:
    return _table(db).contains((Row.role == role) & (Row.account == account))


def add_role(db: DB, role: str, account: str) -> None:
    _table(db).upsert(
        {"role": role, "account": account},
        (Row.role == role) & (Row.account == account),
    )


def remove_role(db: DB, role: str, account: str) -> None:
    _table(db).remove((Row.role == role) & (Row.account == account))


def members(db: DB, role: str) -> list[str]:
    return [row["account"] for row in _table(db).search(Row.role == role)]
