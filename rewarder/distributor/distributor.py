import logging
from typing import Iterable, NamedTuple, Optional

from rewarder.auth import AuthorizationPolicy, Role, require
from rewarder.clock import EpochClock
from rewarder.distributor.policy import SharePolicy
from rewarder.errors import (
    BadConfigException,
    CapExceededError,
    DustAlreadySweptError,
    DustUntrackedError,
    InvalidBatchError,
    InvalidEpochError,
    NotApprovedError,
    PausedError,
    RewardLockedError,
)
from rewarder.models import (
    ClaimApproval,
    ClaimConfig,
    Claimable,
    ClaimCursor,
    ClaimReceipt,
    Event,
    FundedReward,
    checksum,
)
from rewarder.pool import Payout
from rewarder.storage import DB
from rewarder.storage import distributor as storage
from rewarder.storage.events import append_event, list_events
from rewarder.upstream import RewardSource

logger = logging.getLogger(__name__)

BPS = 10_000
DEFAULT_CAP_BPS = 1_000


class EpochShare(NamedTuple):
    epoch: int
    share: int
    reward: int


class RewardDistributor:
    """
    Settles staker rewards from sealed epochs against the funded reward pool.

    Each staker has a claim cursor, the last epoch settled for them. A claim walks forward from
    the cursor through settled epochs below the current one, stopping at the first epoch that is
    not settled, and pays the summed shares in a single transfer. The walk is bounded by
    `max_claim_epochs_per_call`; calling again continues from where the last call stopped.

    For capped policies, no staker other than the treasury may take more than `cap_bps` of an
    epoch's reward. A breach fails the whole claim rather than clamping it.

    Every mutating call is atomic. The cursor is written before the payout, so a re-entrant
    claim made from inside the payout sees the settled cursor and finds nothing to claim.
    """

    def __init__(
        self,
        db: DB,
        clock: EpochClock,
        auth: AuthorizationPolicy,
        policy: SharePolicy,
        pool: Payout,
        source: Optional[RewardSource] = None,
        identity: Optional[str] = None,
        cap_bps: int = DEFAULT_CAP_BPS,
    ):
        self.db = db
        self.clock = clock
        self.auth = auth
        self.policy = policy
        self.pool = pool
        self.source = source
        self.identity = identity
        self.default_cap_bps = cap_bps

    # reads

    def cursor(self, staker: str) -> int:
        return storage.get_cursor(self.db, checksum(staker)).last_settled_epoch

    def is_approved(self, account: str, delegate: str) -> bool:
        return storage.is_approved(self.db, checksum(account), checksum(delegate))

    def claim_config(self) -> ClaimConfig:
        return storage.get_claim_config(self.db)

    def treasury(self) -> Optional[str]:
        return storage.get_treasury(self.db)

    def cap_bps(self) -> int:
        return storage.get_cap_bps(self.db, self.default_cap_bps)

    def paused(self) -> bool:
        return storage.is_paused(self.db)

    def funded_reward(self, epoch: int) -> Optional[FundedReward]:
        return storage.get_funded_reward(self.db, epoch)

    def events(self, name: Optional[str] = None) -> list[Event]:
        return list_events(self.db, name)

    def claimable(self, staker: str) -> Claimable:
        """What `claim` would settle right now, before the cap is applied"""
        shares, next_epoch = self._walk(checksum(staker))
        return Claimable(sum(s.share for s in shares), next_epoch)

    # claims

    def claim(self, sender: str, staker: str) -> int:
        with self.db.atomic():
            receipt = self._settle(sender, staker)

        if receipt is None:
            return 0
        logger.info(
            f"Settled {receipt.amount} for {receipt.staker}, epochs {receipt.from_epoch}-{receipt.to_epoch}"
        )
        return receipt.amount

    def batch_claim(self, sender: str, stakers: Iterable[str]) -> int:
        """
        Claim for several stakers in one call. Every staker must have approved the sender,
        and if any member fails the whole batch is rolled back.
        """
        sender = checksum(sender)
        stakers = [checksum(s) for s in stakers]
        config = self.claim_config()
        if not stakers:
            raise InvalidBatchError("Batch is empty")
        if len(stakers) > config.max_stakers_per_batch:
            raise InvalidBatchError(
                f"Batch of {len(stakers)} exceeds the maximum of {config.max_stakers_per_batch}"
            )

        self._ensure_active()
        for staker in stakers:
            self._authorize(sender, staker)

        with self.db.atomic():
            receipts = [self._settle(sender, staker) for staker in stakers]

        total = sum(r.amount for r in receipts if r is not None)
        logger.info(f"Batch claim by {sender} settled {total} for {len(stakers)} stakers")
        return total

    def set_claim_approval(self, sender: str, delegate: str, allowed: bool) -> None:
        with self.db.atomic():
            approval = ClaimApproval(account=sender, delegate=delegate, allowed=allowed)
            storage.put_approval(self.db, approval)
            self._emit("ClaimApprovalSet", None, **approval.model_dump())

    # administration

    def set_claim_config(
        self, sender: str, max_claim_epochs_per_call: int, max_stakers_per_batch: int
    ) -> ClaimConfig:
        with self.db.atomic():
            require(self.auth, Role.ADMIN, sender)
            config = ClaimConfig(
                max_claim_epochs_per_call=max_claim_epochs_per_call,
                max_stakers_per_batch=max_stakers_per_batch,
            )
            storage.put_claim_config(self.db, config)
            self._emit("ClaimConfigUpdated", None, **config.model_dump())
        return config

    def set_treasury_address(self, sender: str, treasury: Optional[str]) -> None:
        with self.db.atomic():
            require(self.auth, Role.ADMIN, sender)
            treasury = None if treasury is None else checksum(treasury)
            storage.set_treasury(self.db, treasury)
            self._emit("TreasuryUpdated", None, treasury=treasury)
        logger.info(f"Treasury set to {treasury}")

    def set_cap_bps(self, sender: str, cap_bps: int) -> None:
        with self.db.atomic():
            require(self.auth, Role.ADMIN, sender)
            if not 0 < cap_bps <= BPS:
                raise BadConfigException(f"Cap must be within (0, {BPS}] bps, got {cap_bps}")
            storage.set_cap_bps(self.db, cap_bps)
            self._emit("CapUpdated", None, cap_bps=cap_bps)

    def pause(self, sender: str) -> None:
        with self.db.atomic():
            require(self.auth, Role.ADMIN, sender)
            storage.set_paused(self.db, True)
            self._emit("Paused", None)
        logger.warning("Claims paused")

    def unpause(self, sender: str) -> None:
        with self.db.atomic():
            require(self.auth, Role.ADMIN, sender)
            storage.set_paused(self.db, False)
            self._emit("Unpaused", None)
        logger.info("Claims unpaused")

    def set_epoch_reward(self, sender: str, epoch: int, amount: int) -> FundedReward:
        """
        Allocate `amount` from the pool to a completed epoch. The amount can be changed
        until the first claim settles against the epoch.
        """
        with self.db.atomic():
            require(self.auth, Role.ADMIN, sender)
            if amount < 0:
                raise ValueError(f"Epoch reward cannot be negative, got {amount}")
            funded = self._fundable(epoch)
            funded.amount = amount
            storage.put_funded_reward(self.db, funded)
            self._emit("RewardsDistributed", epoch, amount=amount)

        logger.info(f"Epoch {epoch} funded with {amount}")
        return funded

    def pull_from_upstream(self, sender: str) -> int:
        """
        Import whatever has accrued upstream into the most recently completed epoch and
        deposit it into the pool. Returns the amount pulled, 0 when nothing accrued.
        """
        with self.db.atomic():
            require(self.auth, Role.ADMIN, sender)
            if self.source is None:
                raise BadConfigException("No upstream reward source configured")

            epoch = self.clock.current_epoch() - 1
            funded = self._fundable(epoch)
            amount = self.source.pull_upstream(self.identity or "")
            if amount == 0:
                return 0

            funded.amount += amount
            storage.put_funded_reward(self.db, funded)
            self.pool.deposit(amount)
            self._emit("RewardsDistributed", epoch, amount=amount, total=funded.amount)

        logger.info(f"Pulled {amount} from upstream into epoch {epoch}")
        return amount

    def sweep_dust(self, sender: str, epoch: int, recipient: str) -> int:
        """Send an epoch's division remainder to `recipient`, once per epoch"""
        with self.db.atomic():
            require(self.auth, Role.ADMIN, sender)
            recipient = checksum(recipient)
            funded = self.funded_reward(epoch)
            if not self.policy.is_settled(epoch, funded):
                raise InvalidEpochError(f"Epoch {epoch} is not settled")
            dust = self.policy.dust(epoch)
            if dust is None:
                raise DustUntrackedError("This payout policy does not track dust")

            funded = funded or FundedReward(
                epoch=epoch, amount=self.policy.epoch_reward(epoch, funded)
            )
            if funded.dust_swept:
                raise DustAlreadySweptError(f"Dust for epoch {epoch} was already swept")
            funded.dust_swept = True
            storage.put_funded_reward(self.db, funded)
            if dust > 0:
                self.pool.transfer(recipient, dust)
            self._emit("DustSwept", epoch, recipient=recipient, amount=dust)

        logger.info(f"Swept {dust} dust from epoch {epoch} to {recipient}")
        return dust

    # internals

    def _walk(self, staker: str) -> tuple[list[EpochShare], int]:
        """Shares for each settled epoch in the staker's claim range, and the first epoch left over"""
        config = self.claim_config()
        cursor = storage.get_cursor(self.db, staker)
        start = max(cursor.last_settled_epoch + 1, self.policy.first_epoch())
        end = min(
            self.clock.current_epoch() - 1,
            start + config.max_claim_epochs_per_call - 1,
        )

        shares: list[EpochShare] = []
        for epoch in range(start, end + 1):
            funded = storage.get_funded_reward(self.db, epoch)
            # epochs seal in order, so nothing after a gap can be settled
            if not self.policy.is_settled(epoch, funded):
                break
            shares.append(
                EpochShare(
                    epoch,
                    self.policy.share(staker, epoch, funded),
                    self.policy.epoch_reward(epoch, funded),
                )
            )
        next_epoch = shares[-1].epoch + 1 if shares else start
        return shares, next_epoch

    def _settle(self, sender: str, staker: str) -> Optional[ClaimReceipt]:
        self._ensure_active()
        sender = checksum(sender)
        staker = checksum(staker)
        self._authorize(sender, staker)

        shares, _ = self._walk(staker)
        amount = sum(s.share for s in shares)
        # nothing to settle leaves the cursor and the epochs' funding untouched
        if amount == 0:
            return None
        self._enforce_cap(staker, shares)

        receipt = ClaimReceipt(
            staker=staker,
            sender=sender,
            amount=amount,
            from_epoch=shares[0].epoch,
            to_epoch=shares[-1].epoch,
        )

        # commit bookkeeping before paying out
        storage.put_cursor(
            self.db, ClaimCursor(address=staker, last_settled_epoch=receipt.to_epoch)
        )
        for s in shares:
            if s.share > 0:
                self._lock(s.epoch)
        self._emit("RewardsClaimed", receipt.to_epoch, **receipt.model_dump())

        self.pool.transfer(staker, amount)
        return receipt

    def _enforce_cap(self, staker: str, shares: list[EpochShare]) -> None:
        if not self.policy.capped or staker == self.treasury():
            return
        cap_bps = self.cap_bps()
        for s in shares:
            if s.share * BPS > s.reward * cap_bps:
                raise CapExceededError(
                    f"{staker} would take {s.share} of {s.reward} in epoch {s.epoch}, "
                    f"above the {cap_bps} bps cap"
                )

    def _authorize(self, sender: str, staker: str) -> None:
        if sender != staker and not storage.is_approved(self.db, staker, sender):
            raise NotApprovedError(f"{sender} is not approved to claim for {staker}")

    def _ensure_active(self) -> None:
        if self.paused():
            raise PausedError("Claims are paused")

    def _fundable(self, epoch: int) -> FundedReward:
        """The funding record for `epoch`, if the epoch has elapsed and is still unclaimed"""
        current = self.clock.current_epoch()
        if epoch < self.policy.first_epoch() or epoch >= current:
            raise InvalidEpochError(
                f"Only completed epochs can be funded, got {epoch} with current epoch {current}"
            )
        funded = storage.get_funded_reward(self.db, epoch) or FundedReward(epoch=epoch)
        if funded.locked:
            raise RewardLockedError(f"Epoch {epoch} already has settled claims")
        return funded

    def _lock(self, epoch: int) -> None:
        funded = storage.get_funded_reward(self.db, epoch)
        if funded is not None and not funded.locked:
            funded.locked = True
            storage.put_funded_reward(self.db, funded)

    def _emit(self, name: str, epoch: Optional[int], **data) -> None:
        append_event(self.db, Event(name=name, epoch=epoch, data=data))
