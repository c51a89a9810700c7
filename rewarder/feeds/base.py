import logging
from types import ModuleType
from typing import Optional

from rewarder.auth import AuthorizationPolicy, Role, require
from rewarder.clock import EpochClock
from rewarder.errors import (
    InvalidBatchError,
    InvalidEpochError,
    ReportExistsError,
    ReportNotSealedError,
)
from rewarder.models import Event, ReportStatus
from rewarder.storage import DB
from rewarder.storage.events import append_event

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 100


class EpochFeed:
    """
    Shared lifecycle for per-epoch reports.

    A report moves NONE -> OPEN -> SEALED, or back to NONE through an abort. Only the report
    for `next_epoch()` can ever be non-terminal, and `next_epoch()` advances exactly once per
    seal, so epochs seal strictly in order. Claims rely on this to stop at the first unsealed
    epoch without ever skipping a later sealed one.

    Subclasses set `storage` to their versioned storage module and implement `status`.
    """

    storage: ModuleType

    def __init__(
        self,
        db: DB,
        clock: EpochClock,
        auth: AuthorizationPolicy,
        genesis_epoch: int = 1,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ):
        if genesis_epoch < 1:
            raise ValueError(f"genesis epoch must be at least 1, got {genesis_epoch}")
        if max_batch_size < 1:
            raise ValueError(f"max batch size must be positive, got {max_batch_size}")
        self.db = db
        self.clock = clock
        self.auth = auth
        self.genesis_epoch = genesis_epoch
        self.max_batch_size = max_batch_size

    def status(self, epoch: int) -> ReportStatus:
        raise NotImplementedError

    def next_epoch(self) -> int:
        return self.storage.get_next_epoch(self.db, self.genesis_epoch)

    def first_epoch(self) -> int:
        return self.genesis_epoch

    def available(self, epoch: int) -> bool:
        return self.status(epoch) == ReportStatus.SEALED

    def _require_feeder(self, sender: str) -> str:
        return require(self.auth, Role.FEEDER, sender)

    def _open_target(self, epoch: Optional[int] = None) -> int:
        """The epoch a new report would be opened for, if one may be opened right now"""
        target = self.next_epoch()
        if epoch is not None and epoch != target:
            raise InvalidEpochError(f"Reports must target epoch {target}, not {epoch}")

        current = self.clock.current_epoch()
        if target >= current:
            raise InvalidEpochError(
                f"Epoch {target} has not elapsed yet, current epoch is {current}"
            )

        status = self.status(target)
        if status != ReportStatus.NONE:
            raise ReportExistsError(f"Report for epoch {target} is already {status.value}")
        return target

    def _advance(self, epoch: int) -> None:
        self.storage.set_next_epoch(self.db, epoch + 1)

    def _require_sealed(self, epoch: int) -> None:
        if not self.available(epoch):
            raise ReportNotSealedError(f"Report for epoch {epoch} is not sealed")

    def _check_batch(self, batch) -> list:
        batch = list(batch)
        if not batch:
            raise InvalidBatchError("Batch is empty")
        if len(batch) > self.max_batch_size:
            raise InvalidBatchError(
                f"Batch of {len(batch)} exceeds the maximum of {self.max_batch_size}"
            )
        return batch

    def _emit(self, name: str, epoch: int, **data) -> None:
        append_event(self.db, Event(name=name, epoch=epoch, data=data))
