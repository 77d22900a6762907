"""Repository layer - data access abstraction."""

from src.bulkops.repositories.base import BaseRepository
from src.bulkops.repositories.bulk_operation import (
    BulkOperationRepository,
    DataProcessingRepository,
    ExecutionRepository,
)

__all__ = [
    "BaseRepository",
    "BulkOperationRepository",
    "DataProcessingRepository",
    "ExecutionRepository",
]
