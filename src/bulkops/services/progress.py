"""Debounced persistence of stage progress counters."""

from collections.abc import Awaitable, Callable
from typing import Protocol

from src.bulkops.models import StatusType
from src.bulkops.models.base import utc_now

OPERATION_UPDATING_STEP = 100


class ProgressRecord(Protocol):
    processed_num_of_records: int


class ProgressTracker[RecordType: ProgressRecord]:
    """Counts processed records and persists the counter every step records.

    Works on a BulkOperationDataProcessing/BulkOperationExecution row, whose
    status and end time follow the counter, or on the BulkOperation itself
    with track_status=False.
    """

    def __init__(
        self,
        record: RecordType,
        save: Callable[[RecordType], Awaitable[object]],
        step: int = OPERATION_UPDATING_STEP,
        track_status: bool = True,
    ):
        self.record = record
        self.save = save
        self.step = step
        self.track_status = track_status
        self.processed = 0

    async def advance(self, has_next: bool) -> None:
        """Count one record; has_next tells whether another one follows."""
        self.processed += 1
        if self.track_status:
            if has_next:
                self.record.status = StatusType.ACTIVE
                self.record.end_time = None
            else:
                self.record.status = StatusType.COMPLETED
                self.record.end_time = utc_now()
        if self.processed - self.record.processed_num_of_records > self.step:
            self.record.processed_num_of_records = self.processed
            await self.save(self.record)

    async def complete(self) -> None:
        """Persist the final count."""
        self.record.processed_num_of_records = self.processed
        if self.track_status and self.record.status != StatusType.COMPLETED:
            self.record.status = StatusType.COMPLETED
            self.record.end_time = utc_now()
        await self.save(self.record)

    async def fail(self) -> None:
        self.record.processed_num_of_records = self.processed
        if self.track_status:
            self.record.status = StatusType.FAILED
            self.record.end_time = utc_now()
        await self.save(self.record)
