import logging
from typing import Iterable, Optional

from rewarder.errors import (
    DuplicateStakerError,
    ReportNotOpenError,
    TotalsMismatchError,
    WeightOverflowError,
    ZeroAmountError,
)
from rewarder.feeds.base import EpochFeed
from rewarder.models import (
    Report,
    ReportStatus,
    ReportSummary,
    RunningTotal,
    StakerWeight,
    checksum,
)
from rewarder.storage import contribution as storage

logger = logging.getLogger(__name__)


class ContributionFeed(EpochFeed):
    """
    Per-epoch weight reports, pushed by the feeder in batches.

    The feeder declares the total weight and the number of stakers up front, pushes
    weights until both are met exactly, then seals. Sealed reports are immutable and public.
    A report that went wrong is aborted, which removes its weights `max_batch_size` at a time.
    """

    storage = storage

    def status(self, epoch: int) -> ReportStatus:
        return storage.get_status(self.db, epoch)

    def open_report(
        self,
        sender: str,
        declared_total_weight: int,
        declared_count: int,
        epoch: Optional[int] = None,
    ) -> int:
        with self.db.atomic():
            self._require_feeder(sender)
            target = self._open_target(epoch)
            if declared_total_weight <= 0 or declared_count <= 0:
                raise ZeroAmountError("Declared total weight and count must be positive")

            storage.put_report(
                self.db,
                Report(
                    epoch=target,
                    status=ReportStatus.OPEN,
                    declared_total_weight=declared_total_weight,
                    declared_count=declared_count,
                ),
            )
            storage.put_running_total(self.db, RunningTotal(epoch=target))
            self._emit(
                "ReportOpened",
                target,
                declared_total_weight=declared_total_weight,
                declared_count=declared_count,
            )

        logger.info(
            f"Opened report for epoch {target}: {declared_count} stakers, total weight {declared_total_weight}"
        )
        return target

    def push_weights(self, sender: str, weights: Iterable) -> int:
        """
        Append a batch of weights to the open report. Accepts `StakerWeight` models,
        (address, weight) pairs or dicts. Returns the number of weights pushed so far.
        """
        with self.db.atomic():
            self._require_feeder(sender)
            batch = [StakerWeight.coerce(w) for w in self._check_batch(weights)]
            report = self._current_report(ReportStatus.OPEN)

            addresses = [w.address for w in batch]
            if len(set(addresses)) != len(addresses):
                raise DuplicateStakerError("Batch contains the same staker twice")
            existing = storage.find_addresses(self.db, report.epoch, addresses)
            if existing:
                raise DuplicateStakerError(
                    f"Already pushed for epoch {report.epoch}: {', '.join(existing)}"
                )

            running = self._running_total(report.epoch)
            total_weight = running.total_weight + sum(w.weight for w in batch)
            count = running.count + len(batch)
            if (
                total_weight > report.declared_total_weight
                or count > report.declared_count
            ):
                raise WeightOverflowError(
                    f"Batch takes epoch {report.epoch} to {count} stakers / {total_weight} weight, "
                    f"declared {report.declared_count} / {report.declared_total_weight}"
                )

            storage.append_weights(self.db, report.epoch, running.count, batch)
            storage.put_running_total(
                self.db,
                RunningTotal(epoch=report.epoch, total_weight=total_weight, count=count),
            )
            self._emit("WeightsPushed", report.epoch, count=len(batch))

        logger.info(f"Pushed {len(batch)} weights to epoch {report.epoch} ({count} total)")
        return count

    def seal_report(self, sender: str) -> int:
        with self.db.atomic():
            self._require_feeder(sender)
            report = self._current_report(ReportStatus.OPEN)
            running = self._running_total(report.epoch)
            if not running.matches(report):
                raise TotalsMismatchError(
                    f"Epoch {report.epoch} has {running.count} stakers / {running.total_weight} weight, "
                    f"declared {report.declared_count} / {report.declared_total_weight}"
                )

            report.status = ReportStatus.SEALED
            storage.put_report(self.db, report)
            storage.clear_running_total(self.db)
            self._advance(report.epoch)
            self._emit(
                "ReportSealed",
                report.epoch,
                total_weight=report.declared_total_weight,
                count=report.declared_count,
            )

        logger.info(f"Sealed report for epoch {report.epoch}")
        return report.epoch

    def abort_report(self, sender: str) -> int:
        """
        Remove up to `max_batch_size` weights from the open report.
        Returns the number still left; call again until it returns 0, at which point the
        report is gone and the epoch can be reopened.
        """
        with self.db.atomic():
            self._require_feeder(sender)
            report = self._current_report(ReportStatus.OPEN, ReportStatus.ABORTING)
            remaining = storage.pop_weights(self.db, report.epoch, self.max_batch_size)

            if remaining > 0:
                report.status = ReportStatus.ABORTING
                storage.put_report(self.db, report)
            else:
                storage.delete_report(self.db, report.epoch)
                storage.clear_running_total(self.db)
            self._emit("ReportAborted", report.epoch, remaining=remaining)

        if remaining > 0:
            logger.info(f"Aborting epoch {report.epoch}, {remaining} weights left")
        else:
            logger.info(f"Aborted report for epoch {report.epoch}")
        return remaining

    # reads

    def report(self, epoch: int) -> Report:
        return storage.get_report(self.db, epoch)

    def weight_count(self, epoch: int) -> int:
        self._require_sealed(epoch)
        return storage.count_weights(self.db, epoch)

    def weight_at(self, epoch: int, index: int) -> StakerWeight:
        self._require_sealed(epoch)
        weight = storage.weight_at(self.db, epoch, index)
        if weight is None:
            raise IndexError(f"Epoch {epoch} has no weight at index {index}")
        return weight

    def weight_of(self, epoch: int, address: str) -> tuple[int, bool]:
        self._require_sealed(epoch)
        weight = storage.find_weight(self.db, epoch, checksum(address))
        if weight is None:
            return 0, False
        return weight.weight, True

    def weights(self, epoch: int) -> list[StakerWeight]:
        self._require_sealed(epoch)
        return storage.list_weights(self.db, epoch)

    def summary(self, epoch: int) -> ReportSummary:
        self._require_sealed(epoch)
        report = storage.get_report(self.db, epoch)
        return ReportSummary(
            epoch=epoch,
            total_weight=report.declared_total_weight,
            count=report.declared_count,
        )

    def staged_count(self, epoch: int) -> int:
        """Weights held for `epoch` in any state, for the feeder to track progress"""
        return storage.count_weights(self.db, epoch)

    def running_total(self) -> Optional[RunningTotal]:
        return storage.get_running_total(self.db)

    def _current_report(self, *allowed: ReportStatus) -> Report:
        report = storage.get_report(self.db, self.next_epoch())
        if report.status not in allowed:
            raise ReportNotOpenError(
                f"Report for epoch {report.epoch} is {report.status.value}, "
                f"expected {' or '.join(s.value for s in allowed)}"
            )
        return report

    def _running_total(self, epoch: int) -> RunningTotal:
        running = storage.get_running_total(self.db)
        if running is None or running.epoch != epoch:
            return RunningTotal(epoch=epoch)
        return running
