"""
Schema v1 for the equal-split reward feed.

Tables:
- `epoch_rewards`: one `EpochReward` per epoch
- `meta`: `next_epoch`
"""

from tinydb import Query

from rewarder.models import EpochReward
from rewarder.storage.db import DB, get_meta, set_meta

NAMESPACE = "reward_feed"
SCHEMA_VERSION = 1

Row = Query()


def _table(db: DB, name: str):
    return db.versioned_table(NAMESPACE, SCHEMA_VERSION, name)


def get_next_epoch(db: DB, default: int) -> int:
    return get_meta(_table(db, "meta"), "next_epoch", default)


def set_next_epoch(db: DB, epoch: int) -> None:
    set_meta(_table(db, "meta"), "next_epoch", epoch)


def get_epoch_reward(db: DB, epoch: int) -> EpochReward:
    row = _table(db, "epoch_rewards").get(Row.epoch == epoch)
    if row is None:
        return EpochReward(epoch=epoch)
    return EpochReward(**row)


def put_epoch_reward(db: DB, reward: EpochReward) -> None:
    _table(db, "epoch_rewards").upsert(
        reward.model_dump(mode="json"), Row.epoch == reward.epoch
    )


def delete_epoch_reward(db: DB, epoch: int) -> None:
    _table(db, "epoch_rewards").remove(Row.epoch == epoch)
