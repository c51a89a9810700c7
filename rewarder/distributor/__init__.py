from rewarder.distributor.distributor import (
    BPS,
    DEFAULT_CAP_BPS,
    EpochShare,
    RewardDistributor,
)
from rewarder.distributor.policy import EqualSplitShares, SharePolicy, WeightedShares
