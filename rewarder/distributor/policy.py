from typing import Optional, Protocol

from rewarder.feeds import ContributionFeed, RewardFeed, UnitRegistry
from rewarder.models import FundedReward


class SharePolicy(Protocol):
    """
    How the distributor turns an epoch into per-staker shares.
    `funded` is the distributor's own funding record for the epoch, if any.
    """

    # whether the per-wallet concentration cap applies
    capped: bool

    def first_epoch(self) -> int:
        ...

    def is_settled(self, epoch: int, funded: Optional[FundedReward]) -> bool:
        ...

    def epoch_reward(self, epoch: int, funded: Optional[FundedReward]) -> int:
        ...

    def share(self, staker: str, epoch: int, funded: Optional[FundedReward]) -> int:
        ...

    def dust(self, epoch: int) -> Optional[int]:
        ...


class WeightedShares:
    """
    Shares proportional to the staker's weight in the sealed contribution report:
    `floor(weight * reward / total_weight)`.

    An epoch is only settled once its report is sealed *and* the distributor has funded it,
    so an early claim can never walk past an epoch whose reward is still to come.
    The division remainder is unknown until every staker has claimed, so dust is untracked.
    """

    capped = True

    def __init__(self, feed: ContributionFeed):
        self.feed = feed

    def first_epoch(self) -> int:
        return self.feed.first_epoch()

    def is_settled(self, epoch: int, funded: Optional[FundedReward]) -> bool:
        return funded is not None and self.feed.available(epoch)

    def epoch_reward(self, epoch: int, funded: Optional[FundedReward]) -> int:
        return 0 if funded is None else funded.amount

    def share(self, staker: str, epoch: int, funded: Optional[FundedReward]) -> int:
        weight, found = self.feed.weight_of(epoch, staker)
        if not found:
            return 0
        total_weight = self.feed.summary(epoch).total_weight
        return weight * self.epoch_reward(epoch, funded) // total_weight

    def dust(self, epoch: int) -> Optional[int]:
        return None


class EqualSplitShares:
    """
    Every participant unit earns the same `total_reward // total_participant_units`.
    With identical per-unit shares there is no concentration concern, so no cap,
    and the remainder per epoch is known exactly.
    """

    capped = False

    def __init__(self, feed: RewardFeed, units: UnitRegistry):
        self.feed = feed
        self.units = units

    def first_epoch(self) -> int:
        return self.feed.first_epoch()

    def is_settled(self, epoch: int, funded: Optional[FundedReward]) -> bool:
        return self.feed.available(epoch)

    def epoch_reward(self, epoch: int, funded: Optional[FundedReward]) -> int:
        return self.feed.epoch_reward(epoch).total_reward

    def share(self, staker: str, epoch: int, funded: Optional[FundedReward]) -> int:
        return self.units.units_of(staker, epoch) * self.feed.per_unit(epoch)

    def dust(self, epoch: int) -> Optional[int]:
        return self.feed.dust(epoch)
