"""Pydantic schemas: requests, entity rows and per-record results."""

from src.bulkops.schemas.bulk_operation import (
    BulkOperationRuleCollection,
    BulkOperationStart,
    CamelModel,
    Job,
    QueryRequest,
    SubmitQuery,
    UploadedFile,
)
from src.bulkops.schemas.entities import (
    CsvColumn,
    EntityRow,
    HoldingsRecordRow,
    InstanceRow,
    ItemRow,
    UserRow,
    identifier_for_manual_approach,
    resolve_entity_class,
)
from src.bulkops.schemas.results import (
    Applied,
    CommitResult,
    ConverterFailure,
    OptimisticLockingFailure,
    OtherFailure,
    Unchanged,
)

__all__ = [
    # Requests and values
    "BulkOperationRuleCollection",
    "BulkOperationStart",
    "CamelModel",
    "Job",
    "QueryRequest",
    "SubmitQuery",
    "UploadedFile",
    # Entity rows
    "CsvColumn",
    "EntityRow",
    "HoldingsRecordRow",
    "InstanceRow",
    "ItemRow",
    "UserRow",
    "identifier_for_manual_approach",
    "resolve_entity_class",
    # Results
    "Applied",
    "CommitResult",
    "ConverterFailure",
    "OptimisticLockingFailure",
    "OtherFailure",
    "Unchanged",
]
