from dataclasses import dataclass
from typing import Any

import pytest
from eth_utils import to_checksum_address

from rewarder.auth import Role, RoleRegistry
from rewarder.clock import ManualEpochClock
from rewarder.distributor import RewardDistributor, WeightedShares
from rewarder.feeds import ContributionFeed
from rewarder.pool import RewardPool
from rewarder.storage import DB
from rewarder.upstream import StaticRewardSource
from rewarder.utils import chunks

BATCH_SIZE = 3


def address(i: int) -> str:
    return to_checksum_address(f"0x{i:040x}")


@pytest.fixture
def admin() -> str:
    return address(0xAD)


@pytest.fixture
def feeder() -> str:
    return address(0xFEED)


@pytest.fixture
def treasury() -> str:
    return address(0x7EA5)


@pytest.fixture()
def ADDRESSES() -> list[str]:
    return [address(0x1000 + i) for i in range(10)]


@pytest.fixture
def db() -> DB:
    return DB()


@pytest.fixture
def clock() -> ManualEpochClock:
    return ManualEpochClock(1)


@pytest.fixture
def auth(db, admin, feeder) -> RoleRegistry:
    registry = RoleRegistry(db, admin)
    registry.grant_role(admin, Role.FEEDER, feeder)
    return registry


@pytest.fixture
def feed(db, clock, auth) -> ContributionFeed:
    return ContributionFeed(db, clock, auth, max_batch_size=BATCH_SIZE)


@pytest.fixture
def pool(db) -> RewardPool:
    return RewardPool(db)


@pytest.fixture
def source() -> StaticRewardSource:
    return StaticRewardSource()


@pytest.fixture
def distributor(db, clock, auth, feed, pool, source, admin, treasury):
    d = RewardDistributor(
        db, clock, auth, WeightedShares(feed), pool, source=source, identity=admin
    )
    d.set_treasury_address(admin, treasury)
    return d


@pytest.fixture
def seal_epoch(feed, feeder, clock):
    """
    Seal the next epoch with `weights`, a list of (address, weight) pairs,
    moving the clock forward if the epoch has not elapsed yet
    """

    def _seal(weights: list[tuple[str, int]]) -> int:
        if clock.current_epoch() <= feed.next_epoch():
            clock.set(feed.next_epoch() + 1)
        epoch = feed.open_report(feeder, sum(w for _, w in weights), len(weights))
        for batch in chunks(weights, BATCH_SIZE):
            feed.push_weights(feeder, batch)
        feed.seal_report(feeder)
        return epoch

    return _seal


@pytest.fixture
def fund_epoch(distributor, pool, admin):
    def _fund(epoch: int, amount: int) -> None:
        if amount > 0:
            pool.deposit(amount)
        distributor.set_epoch_reward(admin, epoch, amount)

    return _fund


@dataclass
class MockResponse:
    res: dict[str, Any]

    def json(self):
        return self.res
