"""Interfaces of the collaborators the orchestrator consumes."""

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from src.bulkops.models import BulkOperation, EntityType
from src.bulkops.schemas.bulk_operation import (
    BulkOperationRuleCollection,
    Job,
    SubmitQuery,
    UploadedFile,
)
from src.bulkops.schemas.entities import EntityRow


class RemoteWriter(Protocol):
    async def write(self, text: str) -> None: ...


class RemoteFileSystem(Protocol):
    """Blob store holding the artifact files of every operation."""

    async def put(self, content: bytes, path: str) -> str:
        """Store content at path and return its link."""
        ...

    def get(self, path: str) -> AbstractAsyncContextManager[AsyncIterator[str]]:
        """Open path for reading as a stream of text chunks."""
        ...

    def writer(self, path: str) -> AbstractAsyncContextManager[RemoteWriter]:
        """Open path for writing, replacing any previous content."""
        ...

    async def num_of_lines(self, path: str) -> int: ...

    async def remove(self, *paths: str) -> None: ...


@dataclass(frozen=True)
class UpdatedEntityHolder:
    """Rule engine output: the row shown in the preview and the row to commit."""

    preview: EntityRow
    updated: EntityRow


class DataProcessor(Protocol):
    async def process(
        self, identifier: str, entity: EntityRow, rules: BulkOperationRuleCollection
    ) -> UpdatedEntityHolder: ...


class RuleService(Protocol):
    async def get_rules(self, bulk_operation_id: UUID) -> BulkOperationRuleCollection: ...


class RecordUpdateService(Protocol):
    async def update_entity(
        self, original: EntityRow, modified: EntityRow, operation: BulkOperation
    ) -> EntityRow | None:
        """Apply modified downstream.

        Returns:
            The stored record, or None when nothing had to change

        Raises:
            OptimisticLockingError: If the record changed since it was fetched
        """
        ...


class ErrorService(Protocol):
    """Per-record error persistence; increments committed_num_of_errors."""

    async def save_error(
        self,
        bulk_operation_id: UUID,
        identifier: str,
        message: str,
        ui_error_message: str | None = None,
        link_to_failed_entity: str | None = None,
    ) -> None: ...

    async def delete_errors_by_bulk_operation_id(self, bulk_operation_id: UUID) -> None:
        """Drop the errors of an operation and reset its stored error counter."""
        ...

    async def upload_errors_to_storage(self, bulk_operation_id: UUID) -> str | None:
        """Write the errors CSV and return its link, None when there are no errors."""
        ...


class QueryService(Protocol):
    async def execute_query(self, query: SubmitQuery) -> UUID: ...

    async def check_query_execution_status(self, operation: BulkOperation) -> BulkOperation: ...


class EntityTypeService(Protocol):
    async def get_entity_type_by_id(self, entity_type_id: UUID) -> EntityType: ...


class LogFilesService(Protocol):
    async def remove_modified_files(self, operation: BulkOperation) -> None: ...

    async def remove_triggering_and_matched_records_files(
        self, operation: BulkOperation
    ) -> None: ...


class DataExportClient(Protocol):
    async def upsert_job(self, job: Job) -> Job: ...

    async def get_job(self, job_id: UUID) -> Job: ...


class BulkEditClient(Protocol):
    async def upload_file(self, job_id: UUID, file: UploadedFile) -> str:
        """Upload identifiers for a data export job.

        Raises:
            NotFoundError: If the job is not known yet
        """
        ...
