import logging
from typing import Optional, Protocol

from rewarder.errors import ReportNotOpenError, ZeroAmountError
from rewarder.feeds.base import EpochFeed
from rewarder.models import EpochReward, ReportStatus, checksum
from rewarder.storage import reward_feed as storage

logger = logging.getLogger(__name__)


class UnitRegistry(Protocol):
    """Participant units held by a staker in an epoch, owned by the staking mechanics"""

    def units_of(self, staker: str, epoch: int) -> int:
        ...


class StaticUnitRegistry:
    """Units looked up from a plain mapping of epoch -> staker -> units"""

    def __init__(self, units: Optional[dict[int, dict[str, int]]] = None):
        self.units: dict[int, dict[str, int]] = {}
        for epoch, holders in (units or {}).items():
            for staker, amount in holders.items():
                self.set(staker, epoch, amount)

    def set(self, staker: str, epoch: int, units: int) -> None:
        self.units.setdefault(epoch, {})[checksum(staker)] = units

    def units_of(self, staker: str, epoch: int) -> int:
        return self.units.get(epoch, {}).get(checksum(staker), 0)


class RewardFeed(EpochFeed):
    """
    Aggregate per-epoch rewards for the equal-split payout policy.

    Same lifecycle as the contribution feed, but the payload is just the epoch's total reward
    and the number of participant units it is split across, so there is nothing to push and
    an abort completes in a single call.
    """

    storage = storage

    def status(self, epoch: int) -> ReportStatus:
        return storage.get_epoch_reward(self.db, epoch).status

    def open_report(
        self,
        sender: str,
        total_reward: int,
        total_participant_units: int,
        epoch: Optional[int] = None,
    ) -> int:
        with self.db.atomic():
            self._require_feeder(sender)
            target = self._open_target(epoch)
            if total_participant_units <= 0:
                raise ZeroAmountError("Total participant units must be positive")
            if total_reward < 0:
                raise ValueError(f"Total reward cannot be negative, got {total_reward}")

            storage.put_epoch_reward(
                self.db,
                EpochReward(
                    epoch=target,
                    status=ReportStatus.OPEN,
                    total_reward=total_reward,
                    total_participant_units=total_participant_units,
                ),
            )
            self._emit(
                "ReportOpened",
                target,
                total_reward=total_reward,
                total_participant_units=total_participant_units,
            )

        logger.info(
            f"Opened reward report for epoch {target}: {total_reward} across {total_participant_units} units"
        )
        return target

    def seal_report(self, sender: str) -> int:
        with self.db.atomic():
            self._require_feeder(sender)
            reward = self._current(ReportStatus.OPEN)
            reward.status = ReportStatus.SEALED
            storage.put_epoch_reward(self.db, reward)
            self._advance(reward.epoch)
            self._emit("ReportSealed", reward.epoch, total_reward=reward.total_reward)

        logger.info(f"Sealed reward report for epoch {reward.epoch}")
        return reward.epoch

    def abort_report(self, sender: str) -> int:
        with self.db.atomic():
            self._require_feeder(sender)
            reward = self._current(ReportStatus.OPEN, ReportStatus.ABORTING)
            storage.delete_epoch_reward(self.db, reward.epoch)
            self._emit("ReportAborted", reward.epoch, remaining=0)

        logger.info(f"Aborted reward report for epoch {reward.epoch}")
        return 0

    # reads

    def epoch_reward(self, epoch: int) -> EpochReward:
        self._require_sealed(epoch)
        return storage.get_epoch_reward(self.db, epoch)

    def per_unit(self, epoch: int) -> int:
        reward = self.epoch_reward(epoch)
        return reward.total_reward // reward.total_participant_units

    def dust(self, epoch: int) -> int:
        """Remainder of the equal split, never paid to any participant"""
        reward = self.epoch_reward(epoch)
        return reward.total_reward % reward.total_participant_units

    def _current(self, *allowed: ReportStatus) -> EpochReward:
        reward = storage.get_epoch_reward(self.db, self.next_epoch())
        if reward.status not in allowed:
            raise ReportNotOpenError(
                f"Reward report for epoch {reward.epoch} is {reward.status.value}"
            )
        return reward
