from dataclasses import dataclass
from typing import Optional

from rewarder import env
from rewarder.auth import Role, RoleRegistry
from rewarder.clock import EpochClock, MonthlyEpochClock
from rewarder.distributor import RewardDistributor, WeightedShares
from rewarder.feeds import ContributionFeed
from rewarder.models import ClaimConfig, Settings
from rewarder.pool import RewardPool
from rewarder.storage import DB
from rewarder.upstream import HttpRewardSource, RewardSource


@dataclass
class Rewarder:
    """Everything needed to run the weighted payout flow against one database"""

    settings: Settings
    db: DB
    clock: EpochClock
    auth: RoleRegistry
    feed: ContributionFeed
    pool: RewardPool
    distributor: RewardDistributor


def build(
    settings: Settings,
    db: Optional[DB] = None,
    clock: Optional[EpochClock] = None,
    source: Optional[RewardSource] = None,
) -> Rewarder:
    """
    Wire up the weighted flow from settings. On a fresh database the configured feeder
    is granted its role and the treasury is recorded. Claim limits are re-applied
    whenever the settings file changes them.
    """
    db = db if db is not None else DB(settings.db_path or env.DB_PATH)
    clock = clock or MonthlyEpochClock(settings.genesis_month, settings.genesis_year)

    url = settings.reward_source_url or env.REWARD_SOURCE_URL
    if source is None and url:
        source = HttpRewardSource(url)

    auth = RoleRegistry(db, settings.admin)
    feed = ContributionFeed(
        db,
        clock,
        auth,
        genesis_epoch=settings.genesis_epoch,
        max_batch_size=settings.max_batch_size,
    )
    pool = RewardPool(db)
    distributor = RewardDistributor(
        db,
        clock,
        auth,
        WeightedShares(feed),
        pool,
        source=source,
        identity=settings.admin,
        cap_bps=settings.cap_bps,
    )

    if not auth.has_role(Role.FEEDER, settings.feeder):
        auth.grant_role(settings.admin, Role.FEEDER, settings.feeder)
    if settings.treasury and distributor.treasury() is None:
        distributor.set_treasury_address(settings.admin, settings.treasury)
    # claim limits follow the settings file, like the cap
    configured = ClaimConfig(
        max_claim_epochs_per_call=settings.max_claim_epochs_per_call,
        max_stakers_per_batch=settings.max_stakers_per_batch,
    )
    if distributor.claim_config() != configured or not distributor.events(
        "ClaimConfigUpdated"
    ):
        distributor.set_claim_config(
            settings.admin,
            settings.max_claim_epochs_per_call,
            settings.max_stakers_per_batch,
        )

    return Rewarder(settings, db, clock, auth, feed, pool, distributor)
