import calendar
import datetime
from typing import NamedTuple, Optional, Protocol


class EpochClock(Protocol):
    """Monotonically non-decreasing epoch counter. Read-only to the settlement core."""

    def current_epoch(self) -> int:
        ...


class ManualEpochClock:
    """A clock advanced explicitly, used in process and in tests"""

    def __init__(self, epoch: int = 0):
        self._epoch = epoch

    def current_epoch(self) -> int:
        return self._epoch

    def set(self, epoch: int) -> None:
        if epoch < self._epoch:
            raise ValueError(
                f"Epoch clock cannot move backwards: {self._epoch} -> {epoch}"
            )
        self._epoch = epoch

    def advance(self, epochs: int = 1) -> int:
        self.set(self._epoch + epochs)
        return self._epoch


class EpochBoundary(NamedTuple):
    date: datetime.date
    start_date: datetime.datetime
    end_date: datetime.datetime


def get_epoch_dates(month: int, year: int) -> EpochBoundary:
    """Returns the start and end dates of a given month in UTC timezone.

    Args:
        month (int): The month (1-12).
        year (int): The year (2023).
    """
    if month < 1 or month > 12:
        raise ValueError("Invalid month value. Must be between 1 and 12.")

    if year < 2023:
        raise ValueError("Invalid year value. Must be a positive integer >= 2023.")

    _, n_days = calendar.monthrange(year, month)

    date = datetime.date(year, month, 1)
    start_date = datetime.datetime(year, month, 1, tzinfo=datetime.timezone.utc)
    end_date = datetime.datetime(
        year, month, n_days, 23, 59, 59, tzinfo=datetime.timezone.utc
    )

    return EpochBoundary(date, start_date, end_date)


class MonthlyEpochClock:
    """
    Epochs are calendar months in UTC. The genesis month is epoch 1,
    so the epoch that "just elapsed" is always the previous month.
    """

    def __init__(self, genesis_month: int, genesis_year: int, now=None):
        # validates the genesis month
        get_epoch_dates(genesis_month, genesis_year)
        self.genesis_month = genesis_month
        self.genesis_year = genesis_year
        self._now = now or (lambda: datetime.datetime.now(datetime.timezone.utc))

    def epoch_at(self, when: datetime.datetime) -> int:
        months = (when.year - self.genesis_year) * 12 + (
            when.month - self.genesis_month
        )
        return max(months + 1, 0)

    def current_epoch(self) -> int:
        return self.epoch_at(self._now())

    def boundaries(self, epoch: int) -> Optional[EpochBoundary]:
        """Calendar boundaries of `epoch`, None for epochs before genesis"""
        if epoch < 1:
            return None
        months = self.genesis_month - 1 + epoch - 1
        year = self.genesis_year + months // 12
        return get_epoch_dates(months % 12 + 1, year)
