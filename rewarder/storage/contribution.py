"""
Schema v1 for the contribution feed.

Tables:
- `reports`: one header per epoch (`Report`)
- `weights`: one row per pushed `StakerWeight`, with its 0-based `position` in the report
- `scratch`: the single `RunningTotal` of the report being populated
- `meta`: `next_epoch`

Add a new module (and a new version number) rather than changing the layout in place.
"""

from typing import Optional

from tinydb import Query

from rewarder.models import Report, ReportStatus, RunningTotal, StakerWeight
from rewarder.storage.db import DB, get_meta, set_meta

NAMESPACE = "contribution_feed"
SCHEMA_VERSION = 1

Row = Query()


def _table(db: DB, name: str):
    return db.versioned_table(NAMESPACE, SCHEMA_VERSION, name)


# next epoch


def get_next_epoch(db: DB, default: int) -> int:
    return get_meta(_table(db, "meta"), "next_epoch", default)


def set_next_epoch(db: DB, epoch: int) -> None:
    set_meta(_table(db, "meta"), "next_epoch", epoch)


# reports


def get_report(db: DB, epoch: int) -> Report:
    row = _table(db, "reports").get(Row.epoch == epoch)
    if row is None:
        return Report(epoch=epoch)
    return Report(**row)


def put_report(db: DB, report: Report) -> None:
    _table(db, "reports").upsert(
        report.model_dump(mode="json"), Row.epoch == report.epoch
    )


def delete_report(db: DB, epoch: int) -> None:
    _table(db, "reports").remove(Row.epoch == epoch)


def get_status(db: DB, epoch: int) -> ReportStatus:
    return get_report(db, epoch).status


# weights


def append_weights(db: DB, epoch: int, start: int, weights: list[StakerWeight]):
    _table(db, "weights").insert_multiple(
        [
            {"epoch": epoch, "position": start + i, **w.model_dump()}
            for i, w in enumerate(weights)
        ]
    )


def count_weights(db: DB, epoch: int) -> int:
    return _table(db, "weights").count(Row.epoch == epoch)


def weight_at(db: DB, epoch: int, position: int) -> Optional[StakerWeight]:
    row = _table(db, "weights").get(
        (Row.epoch == epoch) & (Row.position == position)
    )
    if row is None:
        return None
    return StakerWeight(address=row["address"], weight=row["weight"])


def find_weight(db: DB, epoch: int, address: str) -> Optional[StakerWeight]:
    row = _table(db, "weights").get((Row.epoch == epoch) & (Row.address == address))
    if row is None:
        return None
    return StakerWeight(address=row["address"], weight=row["weight"])


def find_addresses(db: DB, epoch: int, addresses: list[str]) -> list[str]:
    """Returns which of `addresses` already have a weight in the report"""
    wanted = set(addresses)
    rows = _table(db, "weights").search(
        (Row.epoch == epoch) & Row.address.test(lambda a: a in wanted)
    )
    return [row["address"] for row in rows]


def list_weights(db: DB, epoch: int) -> list[StakerWeight]:
    rows = sorted(
        _table(db, "weights").search(Row.epoch == epoch), key=lambda r: r["position"]
    )
    return [StakerWeight(address=row["address"], weight=row["weight"]) for row in rows]


def pop_weights(db: DB, epoch: int, limit: int) -> int:
    """Remove up to `limit` weights from the end of the report, returns how many are left"""
    table = _table(db, "weights")
    rows = sorted(table.search(Row.epoch == epoch), key=lambda r: r["position"])
    doomed = rows[-limit:] if limit < len(rows) else rows
    table.remove(doc_ids=[row.doc_id for row in doomed])
    return len(rows) - len(doomed)


# scratch


def get_running_total(db: DB) -> Optional[RunningTotal]:
    rows = _table(db, "scratch").all()
    if not rows:
        return None
    return RunningTotal(**rows[0])


def put_running_total(db: DB, running: RunningTotal) -> None:
    table = _table(db, "scratch")
    table.truncate()
    table.insert(running.model_dump())


def clear_running_total(db: DB) -> None:
    _table(db, "scratch").truncate()
