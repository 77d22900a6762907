"""Bulk operation and its per-stage progress rows."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.bulkops.models.base import utc_now
from src.bulkops.models.enums import (
    ApproachType,
    EntityType,
    IdentifierType,
    OperationStatusType,
    StatusType,
)


class BulkOperation(SQLModel, table=True):
    """A single user-initiated bulk edit and links to its artifact files."""

    __tablename__ = "bulk_operation"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID | None = Field(default=None, index=True)
    entity_type: EntityType
    identifier_type: IdentifierType
    approach: ApproachType | None = Field(default=None)
    status: OperationStatusType = Field(default=OperationStatusType.NEW, index=True)
    data_export_job_id: UUID | None = Field(default=None)

    total_num_of_records: int = Field(default=0)
    processed_num_of_records: int = Field(default=0)
    matched_num_of_records: int = Field(default=0)
    committed_num_of_records: int = Field(default=0)
    committed_num_of_errors: int = Field(default=0)

    link_to_triggering_csv_file: str | None = Field(default=None, max_length=1000)
    link_to_matched_records_json_file: str | None = Field(default=None, max_length=1000)
    link_to_modified_records_csv_file: str | None = Field(default=None, max_length=1000)
    link_to_modified_records_json_file: str | None = Field(default=None, max_length=1000)
    link_to_committed_records_csv_file: str | None = Field(default=None, max_length=1000)
    link_to_committed_records_json_file: str | None = Field(default=None, max_length=1000)
    link_to_committed_records_errors_csv_file: str | None = Field(default=None, max_length=1000)

    fql_query: str | None = Field(default=None)
    fql_query_id: UUID | None = Field(default=None)
    user_friendly_query: str | None = Field(default=None)

    start_time: datetime | None = Field(default_factory=utc_now)
    end_time: datetime | None = Field(default=None)
    error_message: str | None = Field(default=None)


class BulkOperationDataProcessing(SQLModel, table=True):
    """Progress of the confirm stage, one row per bulk operation."""

    __tablename__ = "bulk_operation_data_processing"

    bulk_operation_id: UUID = Field(primary_key=True, foreign_key="bulk_operation.id")
    status: StatusType = Field(default=StatusType.ACTIVE)
    start_time: datetime = Field(default_factory=utc_now)
    end_time: datetime | None = Field(default=None)
    total_num_of_records: int = Field(default=0)
    processed_num_of_records: int = Field(default=0)


class BulkOperationExecution(SQLModel, table=True):
    """Progress of the commit stage, one row per bulk operation."""

    __tablename__ = "bulk_operation_execution"

    bulk_operation_id: UUID = Field(primary_key=True, foreign_key="bulk_operation.id")
    status: StatusType = Field(default=StatusType.ACTIVE)
    start_time: datetime = Field(default_factory=utc_now)
    end_time: datetime | None = Field(default=None)
    total_num_of_records: int = Field(default=0)
    processed_num_of_records: int = Field(default=0)
