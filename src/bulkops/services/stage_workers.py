"""Streaming stages of a bulk operation: confirm, apply and commit.

Each stage runs on the background executor and owns its operation until it
returns. Files are opened in async context managers so they are closed on
every exit, and the operation is saved in a finally block whatever happens.
"""

from collections.abc import Callable, Mapping
from datetime import date

from src.bulkops.clients.protocols import (
    DataProcessor,
    ErrorService,
    RecordUpdateService,
    RemoteFileSystem,
    RuleService,
    UpdatedEntityHolder,
)
from src.bulkops.codecs.csv_stream import EntityCsvReader, EntityCsvWriter
from src.bulkops.codecs.json_stream import JsonRecordReader
from src.bulkops.core.exceptions import OptimisticLockingError, ServerError
from src.bulkops.core.logging import bind_operation_context, get_logger
from src.bulkops.models import (
    ApproachType,
    BulkOperation,
    BulkOperationDataProcessing,
    BulkOperationExecution,
    EntityType,
    OperationStatusType,
    StatusType,
)
from src.bulkops.models.base import utc_now
from src.bulkops.repositories import (
    BulkOperationRepository,
    DataProcessingRepository,
    ExecutionRepository,
)
from src.bulkops.schemas.bulk_operation import BulkOperationRuleCollection
from src.bulkops.schemas.entities import (
    EntityRow,
    identifier_for_manual_approach,
    resolve_entity_class,
)
from src.bulkops.schemas.results import (
    Applied,
    CommitResult,
    OptimisticLockingFailure,
    OtherFailure,
    Unchanged,
)
from src.bulkops.services import artifact_paths
from src.bulkops.services.progress import ProgressTracker
from src.bulkops.services.state_machine import fail, transition

logger = get_logger(__name__)


class StageWorkers:
    """The three record-streaming stages of the bulk operation pipeline."""

    def __init__(
        self,
        operation_repo: BulkOperationRepository,
        data_processing_repo: DataProcessingRepository,
        execution_repo: ExecutionRepository,
        file_system: RemoteFileSystem,
        rule_service: RuleService,
        data_processors: Mapping[EntityType, DataProcessor],
        record_update_service: RecordUpdateService,
        error_service: ErrorService,
        today: Callable[[], date] = date.today,
    ):
        self.operation_repo = operation_repo
        self.data_processing_repo = data_processing_repo
        self.execution_repo = execution_repo
        self.file_system = file_system
        self.rule_service = rule_service
        self.data_processors = data_processors
        self.record_update_service = record_update_service
        self.error_service = error_service
        self.today = today

    async def write_to_csv(
        self, operation: BulkOperation, csv_writer: EntityCsvWriter, row: EntityRow
    ) -> None:
        """Write a row, accounting for the fields that failed to convert.

        While changes are applied the record is already committed, so
        conversion failures are only logged.
        """
        failures = await csv_writer.write(row)
        if not failures:
            return
        identifier = row.get_identifier(operation.identifier_type)
        for failure in failures:
            if operation.status == OperationStatusType.APPLY_CHANGES:
                logger.error(
                    "Converter failure on committed record",
                    identifier=identifier,
                    field=failure.field,
                    error=failure.message,
                )
            else:
                await self.error_service.save_error(
                    operation.id, identifier, failure.error_message
                )

    def _processor_for(self, entity_type: EntityType) -> DataProcessor:
        processor = self.data_processors.get(entity_type)
        if processor is None:
            raise ServerError(f"No data processor for entity type {entity_type.value}")
        return processor

    async def _refresh_committed_num_of_errors(self, operation: BulkOperation) -> None:
        # The error service increments the stored counter while a stage runs
        stored = await self.operation_repo.get_committed_num_of_errors(operation.id)
        if stored is not None:
            operation.committed_num_of_errors = stored

    async def _process(
        self,
        processor: DataProcessor,
        operation: BulkOperation,
        original: EntityRow,
        rules: BulkOperationRuleCollection,
    ) -> UpdatedEntityHolder | None:
        identifier = original.get_identifier(operation.identifier_type)
        try:
            return await processor.process(identifier, original, rules)
        except Exception as e:
            logger.error("Failed to modify entity", identifier=identifier, error=str(e))
            return None

    async def confirm(self, operation: BulkOperation) -> None:
        """Run the edit rules over the matched records and write the preview files.

        DATA_MODIFICATION or REVIEW_CHANGES -> REVIEW_CHANGES, FAILED on error.
        """
        bind_operation_context(operation.id)
        operation.processed_num_of_records = 0

        data_processing = await self.data_processing_repo.save(
            BulkOperationDataProcessing(
                bulk_operation_id=operation.id,
                status=StatusType.ACTIVE,
                total_num_of_records=operation.total_num_of_records,
            )
        )
        tracker = ProgressTracker(data_processing, self.data_processing_repo.save)

        today = self.today()
        csv_path = artifact_paths.modified_csv_path(operation.id, today)
        json_path = artifact_paths.modified_json_path(operation.id, today)
        logger.info("Confirm changes started", total=operation.total_num_of_records)

        try:
            row_type = resolve_entity_class(operation.entity_type)
            processor = self._processor_for(operation.entity_type)
            rules = await self.rule_service.get_rules(operation.id)
            async with (
                self.file_system.get(operation.link_to_matched_records_json_file) as chunks,
                self.file_system.writer(csv_path) as csv_out,
                self.file_system.writer(json_path) as json_out,
            ):
                records = JsonRecordReader(chunks, row_type)
                csv_writer = EntityCsvWriter(csv_out, row_type)

                if await records.has_next():
                    operation.link_to_modified_records_csv_file = csv_path

                async for original in records:
                    holder = await self._process(processor, operation, original, rules)
                    if holder is not None:
                        await self.write_to_csv(operation, csv_writer, holder.preview)
                        await json_out.write(holder.updated.to_json() + "\n")
                    await tracker.advance(await records.has_next())

            operation.link_to_modified_records_json_file = json_path
            await tracker.complete()

            operation.approach = ApproachType.IN_APP
            transition(operation, OperationStatusType.REVIEW_CHANGES)
            operation.processed_num_of_records = tracker.processed
            await self._refresh_committed_num_of_errors(operation)
            logger.info("Confirm changes finished", processed=tracker.processed)
        except Exception as e:
            logger.exception("Confirm changes failed")
            await tracker.fail()
            fail(operation, f"Confirm changes operation failed, reason: {e}")
        finally:
            await self.operation_repo.save(operation)

    async def apply(self, operation: BulkOperation) -> None:
        """Convert a manually edited preview CSV into the modified JSON file.

        Raises:
            ServerError: If the files cannot be read or written
        """
        bind_operation_context(operation.id)
        operation.processed_num_of_records = 0
        json_path = artifact_paths.modified_json_path(operation.id, self.today())
        tracker = ProgressTracker(operation, self.operation_repo.save, track_status=False)
        logger.info("Apply changes started", total=operation.total_num_of_records)

        try:
            row_type = resolve_entity_class(operation.entity_type)
            async with (
                self.file_system.get(operation.link_to_modified_records_csv_file) as chunks,
                self.file_system.writer(json_path) as json_out,
            ):
                records = EntityCsvReader(chunks, row_type, skip_lines=1)
                async for row in records:
                    has_next = await records.has_next()
                    await json_out.write(row.to_json() + ("\n" if has_next else ""))
                    await tracker.advance(has_next)

            for captured in records.captured_errors:
                identifier = identifier_for_manual_approach(
                    captured.cells, operation.identifier_type, row_type
                )
                await self.error_service.save_error(operation.id, identifier, captured.message)
            records.captured_errors.clear()

            operation.processed_num_of_records = tracker.processed
            transition(operation, OperationStatusType.REVIEW_CHANGES)
            operation.link_to_modified_records_json_file = json_path
            await self._refresh_committed_num_of_errors(operation)
            logger.info("Apply changes finished", processed=tracker.processed)
        except Exception as e:
            operation.error_message = f"Error applying changes: {e.__cause__ or e}"
            raise ServerError(str(e)) from e
        finally:
            await self.operation_repo.save(operation)

    async def _update(
        self, operation: BulkOperation, original: EntityRow, modified: EntityRow
    ) -> CommitResult:
        try:
            result = await self.record_update_service.update_entity(original, modified, operation)
        except OptimisticLockingError as e:
            return OptimisticLockingFailure(
                e.csv_error_message, e.ui_error_message, e.link_to_failed_entity
            )
        except Exception as e:
            return OtherFailure(str(e))
        return Unchanged() if result is None else Applied(result)

    async def _record_failure(
        self, operation: BulkOperation, original: EntityRow, result: CommitResult
    ) -> None:
        identifier = original.get_identifier(operation.identifier_type)
        if isinstance(result, OptimisticLockingFailure):
            logger.warning("Record changed since it was fetched", identifier=identifier)
            await self.error_service.save_error(
                operation.id,
                identifier,
                result.csv_message,
                result.ui_message,
                result.link_to_failed_entity,
            )
        elif isinstance(result, OtherFailure):
            logger.warning("Record update failed", identifier=identifier, error=result.message)
            await self.error_service.save_error(operation.id, identifier, result.message)

    async def _commit_records(self, operation: BulkOperation) -> None:
        execution = await self.execution_repo.save(
            BulkOperationExecution(
                bulk_operation_id=operation.id,
                status=StatusType.ACTIVE,
                total_num_of_records=operation.total_num_of_records,
            )
        )
        tracker = ProgressTracker(execution, self.execution_repo.save)

        today = self.today()
        csv_path = artifact_paths.committed_csv_path(operation.id, today)
        json_path = artifact_paths.committed_json_path(operation.id, today)

        try:
            row_type = resolve_entity_class(operation.entity_type)
            async with (
                self.file_system.get(operation.link_to_matched_records_json_file) as originals_in,
                self.file_system.get(operation.link_to_modified_records_json_file) as modified_in,
                self.file_system.writer(csv_path) as csv_out,
                self.file_system.writer(json_path) as json_out,
            ):
                originals = JsonRecordReader(originals_in, row_type)
                modifieds = JsonRecordReader(modified_in, row_type)
                csv_writer = EntityCsvWriter(csv_out, row_type)

                while await originals.has_next() and await modifieds.has_next():
                    original = await originals.next()
                    modified = await modifieds.next()
                    result = await self._update(operation, original, modified)
                    has_next = await originals.has_next() and await modifieds.has_next()

                    if isinstance(result, Applied):
                        operation.committed_num_of_records += 1
                        await json_out.write(result.row.to_json() + ("\n" if has_next else ""))
                        await self.write_to_csv(operation, csv_writer, result.row)
                    else:
                        await self._record_failure(operation, original, result)
                    await tracker.advance(has_next)

                if await originals.has_next() or await modifieds.has_next():
                    logger.warning(
                        "Matched and modified records differ in length, the rest was skipped",
                        processed=tracker.processed,
                    )

            await tracker.complete()
            operation.processed_num_of_records = operation.committed_num_of_records
            operation.end_time = utc_now()
        except Exception as e:
            logger.exception("Commit changes failed")
            await tracker.fail()
            fail(operation, f"Commit changes operation failed, reason: {e}")
        finally:
            if operation.committed_num_of_records > 0:
                operation.link_to_committed_records_csv_file = csv_path
                operation.link_to_committed_records_json_file = json_path

    async def commit(self, operation: BulkOperation) -> None:
        """Apply the modified records downstream.

        REVIEW_CHANGES -> APPLY_CHANGES -> COMPLETED, COMPLETED_WITH_ERRORS
        or FAILED.
        """
        bind_operation_context(operation.id)
        operation.committed_num_of_records = 0
        transition(operation, OperationStatusType.APPLY_CHANGES)
        operation.total_num_of_records = operation.matched_num_of_records
        await self.operation_repo.save(operation)
        logger.info("Commit changes started", total=operation.total_num_of_records)

        try:
            if operation.link_to_modified_records_json_file:
                await self._commit_records(operation)

            errors_link = await self.error_service.upload_errors_to_storage(operation.id)
            operation.link_to_committed_records_errors_csv_file = errors_link
            if operation.status != OperationStatusType.FAILED:
                transition(
                    operation,
                    OperationStatusType.COMPLETED_WITH_ERRORS
                    if errors_link
                    else OperationStatusType.COMPLETED,
                )
            logger.info(
                "Commit changes finished",
                status=operation.status,
                committed=operation.committed_num_of_records,
            )
        except Exception as e:
            logger.exception("Commit changes failed")
            if operation.status != OperationStatusType.FAILED:
                fail(operation, f"Commit changes operation failed, reason: {e}")
        finally:
            await self._refresh_committed_num_of_errors(operation)
            await self.operation_repo.save(operation)
