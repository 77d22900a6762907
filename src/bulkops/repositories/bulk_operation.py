"""Repositories for BulkOperation and its progress rows."""

from uuid import UUID

from sqlmodel import select

from src.bulkops.models import (
    BulkOperation,
    BulkOperationDataProcessing,
    BulkOperationExecution,
)
from src.bulkops.repositories.base import BaseRepository


class BulkOperationRepository(BaseRepository[BulkOperation]):
    """Repository for BulkOperation entity."""

    model = BulkOperation

    async def get_committed_num_of_errors(self, id: UUID) -> int | None:
        """Read the stored error counter without touching any in-memory copy.

        The error service increments this column concurrently with a running
        stage, so stages re-read it right before their final save.
        """
        async with self.session_factory() as session:
            result = await session.execute(
                select(BulkOperation.committed_num_of_errors).where(BulkOperation.id == id)
            )
            return result.scalar_one_or_none()


class DataProcessingRepository(BaseRepository[BulkOperationDataProcessing]):
    """Repository for confirm-stage progress, keyed by bulk operation id."""

    model = BulkOperationDataProcessing


class ExecutionRepository(BaseRepository[BulkOperationExecution]):
    """Repository for commit-stage progress, keyed by bulk operation id."""

    model = BulkOperationExecution
