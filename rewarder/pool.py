import logging
from typing import Protocol

from rewarder.errors import InsufficientBalanceError, ZeroAmountError
from rewarder.models import checksum
from rewarder.storage import DB
from rewarder.storage import pool as storage

logger = logging.getLogger(__name__)


class Payout(Protocol):
    """
    The pay out effect. `transfer` raises `InsufficientBalanceError` when the pool is short,
    `deposit` credits rewards arriving from upstream.
    """

    def transfer(self, recipient: str, amount: int) -> None:
        ...

    def deposit(self, amount: int) -> int:
        ...


class RewardPool:
    """
    Funded reward balance, kept in the same database as the distributor
    so a rolled-back claim also rolls back its transfer.
    """

    def __init__(self, db: DB):
        self.db = db

    def balance(self) -> int:
        return storage.get_balance(self.db)

    def paid_to(self, recipient: str) -> int:
        return storage.get_paid(self.db, checksum(recipient))

    def payouts(self) -> dict[str, int]:
        return storage.all_paid(self.db)

    def deposit(self, amount: int) -> int:
        if amount <= 0:
            raise ZeroAmountError("Deposit must be positive")
        with self.db.atomic():
            balance = self.balance() + amount
            storage.set_balance(self.db, balance)
        logger.info(f"Deposited {amount} into the reward pool, balance {balance}")
        return balance

    def transfer(self, recipient: str, amount: int) -> None:
        recipient = checksum(recipient)
        with self.db.atomic():
            balance = self.balance()
            if amount > balance:
                raise InsufficientBalanceError(
                    f"Pool holds {balance}, cannot pay {amount} to {recipient}"
                )
            storage.set_balance(self.db, balance - amount)
            storage.add_paid(self.db, recipient, amount)
