"""Model exports.

Import from here: `from src.bulkops.models import BulkOperation, OperationStatusType`
"""

from src.bulkops.models.bulk_operation import (
    BulkOperation,
    BulkOperationDataProcessing,
    BulkOperationExecution,
)
from src.bulkops.models.enums import (
    ApproachType,
    BulkOperationStep,
    EntityType,
    ExportType,
    IdentifierType,
    JobStatus,
    OperationStatusType,
    StatusType,
)

__all__ = [
    # Enums
    "ApproachType",
    "BulkOperationStep",
    "EntityType",
    "ExportType",
    "IdentifierType",
    "JobStatus",
    "OperationStatusType",
    "StatusType",
    # Tables
    "BulkOperation",
    "BulkOperationDataProcessing",
    "BulkOperationExecution",
]
