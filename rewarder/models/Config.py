from typing import Optional

from pydantic import BaseModel, Field, field_validator

from rewarder.models.types import EthereumAddress, checksum


class Settings(BaseModel):
    """
    Deployment settings, loaded from `rewarder-conf.json`
    :param `genesis_epoch`: first epoch the feeds accept reports for
    :param `genesis_month`, `genesis_year`: calendar month that epoch 1 corresponds to
    :param `max_batch_size`: upper bound on entries pushed or removed in one call
    :param `cap_bps`: per-wallet share cap in basis points of an epoch's reward
    """

    admin: EthereumAddress
    feeder: EthereumAddress
    treasury: Optional[EthereumAddress] = None

    genesis_epoch: int = Field(default=1, gt=0)
    genesis_month: int = 1
    genesis_year: int = 2024

    max_batch_size: int = Field(default=100, gt=0)
    cap_bps: int = Field(default=1000, gt=0, le=10_000)
    max_claim_epochs_per_call: int = Field(default=52, gt=0)
    max_stakers_per_batch: int = Field(default=50, gt=0)

    db_path: Optional[str] = None
    reward_source_url: Optional[str] = None
    reports_dir: str = "reports"

    @field_validator("admin", "feeder", "treasury")
    @classmethod
    def checksum_addresses(cls, input: Optional[str]):
        if input is None:
            return input
        return checksum(input)
