"""
Schema v1 for the reward distributor.

Tables:
- `cursors`: `ClaimCursor` per staker, created lazily on first settlement
- `approvals`: `ClaimApproval` per (account, delegate)
- `funded_rewards`: `FundedReward` per epoch
- `meta`: `claim_config`, `treasury`, `cap_bps`, `paused`
"""

from typing import Optional

from tinydb import Query

from rewarder.models import ClaimApproval, ClaimConfig, ClaimCursor, FundedReward
from rewarder.storage.db import DB, get_meta, set_meta

NAMESPACE = "reward_distributor"
SCHEMA_VERSION = 1

Row = Query()


def _table(db: DB, name: str):
    return db.versioned_table(NAMESPACE, SCHEMA_VERSION, name)


# cursors


def get_cursor(db: DB, address: str) -> ClaimCursor:
    row = _table(db, "cursors").get(Row.address == address)
    if row is None:
        return ClaimCursor(address=address)
    return ClaimCursor(**row)


def put_cursor(db: DB, cursor: ClaimCursor) -> None:
    _table(db, "cursors").upsert(cursor.model_dump(), Row.address == cursor.address)


# approvals


def is_approved(db: DB, account: str, delegate: str) -> bool:
    row = _table(db, "approvals").get(
        (Row.account == account) & (Row.delegate == delegate)
    )
    return bool(row and row["allowed"])


def put_approval(db: DB, approval: ClaimApproval) -> None:
    _table(db, "approvals").upsert(
        approval.model_dump(),
        (Row.account == approval.account) & (Row.delegate == approval.delegate),
    )


# funded rewards


def get_funded_reward(db: DB, epoch: int) -> Optional[FundedReward]:
    row = _table(db, "funded_rewards").get(Row.epoch == epoch)
    if row is None:
        return None
    return FundedReward(**row)


def put_funded_reward(db: DB, reward: FundedReward) -> None:
    _table(db, "funded_rewards").upsert(reward.model_dump(), Row.epoch == reward.epoch)


# settings


def get_claim_config(db: DB) -> ClaimConfig:
    raw = get_meta(_table(db, "meta"), "claim_config")
    if raw is None:
        return ClaimConfig()
    return ClaimConfig(**raw)


def put_claim_config(db: DB, config: ClaimConfig) -> None:
    set_meta(_table(db, "meta"), "claim_config", config.model_dump())


def get_treasury(db: DB) -> Optional[str]:
    return get_meta(_table(db, "meta"), "treasury")


def set_treasury(db: DB, address: Optional[str]) -> None:
    set_meta(_table(db, "meta"), "treasury", address)


def get_cap_bps(db: DB, default: int) -> int:
    return get_meta(_table(db, "meta"), "cap_bps", default)


def set_cap_bps(db: DB, cap_bps: int) -> None:
    set_meta(_table(db, "meta"), "cap_bps", cap_bps)


def is_paused(db: DB) -> bool:
    return get_meta(_table(db, "meta"), "paused", False)


def set_paused(db: DB, paused: bool) -> None:
    set_meta(_table(db, "meta"), "paused", paused)
