from __future__ import annotations

from typing import Union

from pydantic import BaseModel, field_validator

from rewarder.errors import ZeroWeightError
from rewarder.models.types import Amount, EthereumAddress, checksum


class User(BaseModel):
    """Base class for a user with an eth address"""

    address: EthereumAddress

    @field_validator("address")
    @classmethod
    def checksum_address(cls, input: str):
        return checksum(input)


class StakerWeight(User):
    """
    A staker's proportional share of an epoch's contribution.
    Meaningful only relative to the report's declared total, and immutable once pushed.
    """

    weight: Amount

    @field_validator("weight")
    @classmethod
    def ensure_positive(cls, weight: int) -> int:
        if weight <= 0:
            raise ZeroWeightError(f"weights must be positive, received {weight}")
        return weight

    @staticmethod
    def coerce(entry: Union[StakerWeight, tuple[str, int], dict]) -> StakerWeight:
        """Accept a model, an (address, weight) pair or a raw dict from a feed file"""
        if isinstance(entry, StakerWeight):
            return entry
        if isinstance(entry, dict):
            return StakerWeight(**entry)
        address, weight = entry
        return StakerWeight(address=address, weight=weight)


class ClaimCursor(User):
    """
    :param `last_settled_epoch`: last epoch whose reward has been settled, 0 if never claimed.
    Never decreases.
    """

    last_settled_epoch: int = 0


class ClaimApproval(BaseModel):
    """Grants `delegate` the right to claim on behalf of `account`"""

    account: EthereumAddress
    delegate: EthereumAddress
    allowed: bool

    @field_validator("account", "delegate")
    @classmethod
    def checksum_addresses(cls, input: str):
        return checksum(input)
