from typing import Any, Optional

from pydantic import BaseModel, Field

from rewarder.models.types import Amount, Epoch, EthereumAddress


class ClaimConfig(BaseModel):
    """
    Administrator-set bounds on the work a single claim call can do
    :param `max_claim_epochs_per_call`: epochs walked per staker per call
    :param `max_stakers_per_batch`: stakers settled by a single batch claim
    """

    max_claim_epochs_per_call: int = Field(default=52, gt=0)
    max_stakers_per_batch: int = Field(default=50, gt=0)


class FundedReward(BaseModel):
    """
    Reward pool allocated to a single epoch.
    :param `locked`: set once a claim settles against the epoch, after which the amount is final
    :param `dust_swept`: whether the division remainder has been recovered
    """

    epoch: Epoch
    amount: Amount = 0
    locked: bool = False
    dust_swept: bool = False


class ClaimReceipt(BaseModel):
    """
    Minimal record of a settlement
    :param `sender`: who made the call, the staker or an approved delegate
    :param `from_epoch`, `to_epoch`: inclusive range of epochs processed
    """

    staker: EthereumAddress
    sender: EthereumAddress
    amount: Amount
    from_epoch: Epoch
    to_epoch: Epoch


class Event(BaseModel):
    """Audit record written for every state transition"""

    name: str
    epoch: Optional[Epoch] = None
    data: dict[str, Any] = {}
