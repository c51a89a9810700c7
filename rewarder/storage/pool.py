"""
Schema v1 for the reward pool.

Tables:
- `meta`: `balance`
- `payouts`: running total paid to each recipient
"""

from tinydb import Query

from rewarder.storage.db import DB, get_meta, set_meta

NAMESPACE = "reward_pool"
SCHEMA_VERSION = 1

Row = Query()


def _table(db: DB, name: str):
    return db.versioned_table(NAMESPACE, SCHEMA_VERSION, name)


def get_balance(db: DB) -> int:
    return get_meta(_table(db, "meta"), "balance", 0)


def set_balance(db: DB, balance: int) -> None:
    set_meta(_table(db, "meta"), "balance", balance)


def get_paid(db: DB, recipient: str) -> int:
    row = _table(db, "payouts").get(Row.recipient == recipient)
    return 0 if row is None else row["amount"]


def add_paid(db: DB, recipient: str, amount: int) -> None:
    total = get_paid(db, recipient) + amount
    _table(db, "payouts").upsert(
        {"recipient": recipient, "amount": total}, Row.recipient == recipient
    )


def all_paid(db: DB) -> dict[str, int]:
    return {row["recipient"]: row["amount"] for row in _table(db, "payouts").all()}
