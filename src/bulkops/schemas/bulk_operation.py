"""Request and value schemas exchanged with callers and downstream modules."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.bulkops.models.enums import (
    ApproachType,
    BulkOperationStep,
    EntityType,
    ExportType,
    IdentifierType,
    JobStatus,
)


class CamelModel(BaseModel):
    """Base for schemas whose wire format uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BulkOperationStart(CamelModel):
    """Operator request to start a step of a bulk operation."""

    step: BulkOperationStep
    approach: ApproachType | None = None
    entity_type: EntityType | None = None
    entity_custom_identifier_type: IdentifierType | None = None


class QueryRequest(CamelModel):
    """Request to build a bulk operation from a server-side query."""

    fql_query: str = Field(min_length=1)
    entity_type_id: UUID
    user_friendly_query: str | None = None


class SubmitQuery(CamelModel):
    """Query submission sent to the query service."""

    fql_query: str
    entity_type_id: UUID


class Job(CamelModel):
    """Data export job."""

    id: UUID | None = None
    type: ExportType
    status: JobStatus | None = None
    entity_type: EntityType | None = None
    identifier_type: IdentifierType | None = None
    export_type_specific_parameters: dict[str, Any] = Field(default_factory=dict)


class BulkOperationRuleCollection(CamelModel):
    """Edit rules of a bulk operation; opaque to the orchestrator."""

    bulk_operation_rules: list[dict[str, Any]] = Field(default_factory=list)
    total_records: int = 0


class UploadedFile(BaseModel):
    """A file received from the caller or re-sent downstream."""

    filename: str
    content: bytes
    content_type: str = "text/csv"
