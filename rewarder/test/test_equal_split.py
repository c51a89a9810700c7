import pytest

from rewarder.distributor import EqualSplitShares, RewardDistributor
from rewarder.errors import (
    DustAlreadySweptError,
    InvalidEpochError,
    NotAuthorizedError,
    ReportExistsError,
    ReportNotOpenError,
    ReportNotSealedError,
    ZeroAmountError,
)
from rewarder.feeds import RewardFeed, StaticUnitRegistry
from rewarder.models import Claimable, ReportStatus


@pytest.fixture
def reward_feed(db, clock, auth) -> RewardFeed:
    return RewardFeed(db, clock, auth)


@pytest.fixture
def units(ADDRESSES) -> StaticUnitRegistry:
    return StaticUnitRegistry(
        {
            1: {ADDRESSES[0]: 2, ADDRESSES[1]: 1},
            2: {ADDRESSES[0]: 1, ADDRESSES[1]: 1, ADDRESSES[2]: 2},
        }
    )


@pytest.fixture
def equal_split(db, clock, auth, reward_feed, units, pool) -> RewardDistributor:
    return RewardDistributor(db, clock, auth, EqualSplitShares(reward_feed, units), pool)


@pytest.fixture
def seal_reward(reward_feed, feeder, clock, pool):
    def _seal(total_reward: int, total_units: int) -> int:
        if clock.current_epoch() <= reward_feed.next_epoch():
            clock.set(reward_feed.next_epoch() + 1)
        epoch = reward_feed.open_report(feeder, total_reward, total_units)
        reward_feed.seal_report(feeder)
        if total_reward > 0:
            pool.deposit(total_reward)
        return epoch

    return _seal


def test_reward_feed_lifecycle(reward_feed, feeder, clock):
    clock.set(2)
    assert reward_feed.open_report(feeder, 100, 3) == 1
    assert reward_feed.status(1) == ReportStatus.OPEN

    with pytest.raises(ReportNotSealedError):
        reward_feed.epoch_reward(1)
    with pytest.raises(ReportExistsError):
        reward_feed.open_report(feeder, 100, 3)

    assert reward_feed.seal_report(feeder) == 1
    assert reward_feed.available(1)
    assert reward_feed.next_epoch() == 2

    reward = reward_feed.epoch_reward(1)
    assert reward.total_reward == 100
    assert reward.total_participant_units == 3
    assert reward_feed.per_unit(1) == 33
    assert reward_feed.dust(1) == 1


def test_reward_feed_abort(reward_feed, feeder, clock):
    clock.set(2)
    reward_feed.open_report(feeder, 100, 3)

    assert reward_feed.abort_report(feeder) == 0
    assert reward_feed.status(1) == ReportStatus.NONE
    assert reward_feed.next_epoch() == 1

    with pytest.raises(ReportNotOpenError):
        reward_feed.abort_report(feeder)

    # reopen with corrected totals
    reward_feed.open_report(feeder, 90, 3)
    reward_feed.seal_report(feeder)
    assert reward_feed.per_unit(1) == 30
    assert reward_feed.dust(1) == 0


def test_reward_feed_guards(reward_feed, feeder, admin, clock):
    with pytest.raises(InvalidEpochError):
        reward_feed.open_report(feeder, 100, 3)

    clock.set(2)
    with pytest.raises(NotAuthorizedError):
        reward_feed.open_report(admin, 100, 3)
    with pytest.raises(ZeroAmountError):
        reward_feed.open_report(feeder, 100, 0)
    with pytest.raises(ValueError):
        reward_feed.open_report(feeder, -1, 3)
    with pytest.raises(ReportNotOpenError):
        reward_feed.seal_report(feeder)


def test_equal_split_claims(equal_split, seal_reward, pool, ADDRESSES):
    seal_reward(100, 3)
    A, B = ADDRESSES[:2]

    assert equal_split.claimable(A) == Claimable(66, 2)
    # no concentration cap, every unit earns the same
    assert equal_split.claim(A, A) == 66
    assert equal_split.claim(B, B) == 33
    assert pool.balance() == 1


def test_equal_split_accumulates(equal_split, seal_reward, ADDRESSES):
    seal_reward(100, 3)
    seal_reward(40, 4)
    A, _, C = ADDRESSES[:3]

    assert equal_split.claim(A, A) == 66 + 10
    assert equal_split.cursor(A) == 2
    assert equal_split.claim(C, C) == 20


def test_equal_split_stops_at_unsealed_epoch(equal_split, seal_reward, reward_feed, feeder, clock, ADDRESSES):
    seal_reward(100, 3)
    clock.set(3)
    reward_feed.open_report(feeder, 40, 4)

    A = ADDRESSES[0]
    assert equal_split.claim(A, A) == 66
    assert equal_split.cursor(A) == 1


def test_sweep_dust(equal_split, seal_reward, pool, admin, treasury, ADDRESSES):
    seal_reward(100, 3)

    with pytest.raises(NotAuthorizedError):
        equal_split.sweep_dust(ADDRESSES[0], 1, treasury)

    assert equal_split.sweep_dust(admin, 1, treasury) == 1
    assert pool.paid_to(treasury) == 1
    with pytest.raises(DustAlreadySweptError):
        equal_split.sweep_dust(admin, 1, treasury)

    # the stakers are still paid in full
    assert equal_split.claim(ADDRESSES[0], ADDRESSES[0]) == 66
    assert equal_split.claim(ADDRESSES[1], ADDRESSES[1]) == 33
    assert pool.balance() == 0


def test_sweep_dust_requires_sealed_epoch(equal_split, admin, treasury, clock):
    clock.set(3)
    with pytest.raises(InvalidEpochError):
        equal_split.sweep_dust(admin, 1, treasury)


def test_static_unit_registry(ADDRESSES):
    units = StaticUnitRegistry()
    units.set(ADDRESSES[0].lower(), 1, 5)
    assert units.units_of(ADDRESSES[0], 1) == 5
    assert units.units_of(ADDRESSES[0], 2) == 0
    assert units.units_of(ADDRESSES[1], 1) == 0
