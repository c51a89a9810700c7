from rewarder.feeds.base import DEFAULT_MAX_BATCH_SIZE, EpochFeed
from rewarder.feeds.contribution import ContributionFeed
from rewarder.feeds.reward import RewardFeed, StaticUnitRegistry, UnitRegistry
