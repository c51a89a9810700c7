from enum import Enum

from pydantic import BaseModel

from rewarder.models.types import Amount, Epoch


class ReportStatus(str, Enum):
    """
    :state NONE: nothing recorded for the epoch, the report can be opened
    :state OPEN: totals declared, weights are being pushed
    :state SEALED: terminal, immutable and readable by anyone
    :state ABORTING: weights are being removed in chunks, call abort again
    """

    NONE = "none"
    OPEN = "open"
    SEALED = "sealed"
    ABORTING = "aborting"


class Report(BaseModel):
    """
    Header of a per-epoch report. Weights are stored separately, in push order.
    :param `declared_total_weight`: sum the pushed weights must reach exactly before sealing
    :param `declared_count`: number of distinct stakers that must be pushed before sealing
    """

    epoch: Epoch
    status: ReportStatus = ReportStatus.NONE
    declared_total_weight: Amount = 0
    declared_count: int = 0


class RunningTotal(BaseModel):
    """
    Scratch record for the report currently being populated,
    so integrity checks never have to rescan the weight list
    """

    epoch: Epoch
    total_weight: Amount = 0
    count: int = 0

    def matches(self, report: Report) -> bool:
        return (
            self.total_weight == report.declared_total_weight
            and self.count == report.declared_count
        )


class ReportSummary(BaseModel):
    epoch: Epoch
    total_weight: Amount
    count: int


class EpochReward(BaseModel):
    """
    Aggregate report used by the equal-split payout policy.
    Every participant unit earns `total_reward // total_participant_units`.
    """

    epoch: Epoch
    status: ReportStatus = ReportStatus.NONE
    total_reward: Amount = 0
    total_participant_units: int = 0
