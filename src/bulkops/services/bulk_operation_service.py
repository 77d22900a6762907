"""Bulk operation orchestration: entry points, step dispatch and read paths."""

from collections.abc import Callable
from datetime import date
from pathlib import PurePosixPath
from uuid import UUID

from src.bulkops.clients.protocols import (
    BulkEditClient,
    DataExportClient,
    EntityTypeService,
    ErrorService,
    LogFilesService,
    QueryService,
    RemoteFileSystem,
)
from src.bulkops.core.config import get_settings
from src.bulkops.core.exceptions import (
    BulkOperationError,
    IllegalOperationStateError,
    NotFoundError,
)
from src.bulkops.core.executor import BackgroundExecutor, background_executor
from src.bulkops.core.logging import get_logger
from src.bulkops.models import (
    ApproachType,
    BulkOperation,
    BulkOperationStep,
    EntityType,
    ExportType,
    IdentifierType,
    JobStatus,
    OperationStatusType,
    StatusType,
)
from src.bulkops.repositories import (
    BulkOperationRepository,
    DataProcessingRepository,
    ExecutionRepository,
)
from src.bulkops.schemas.bulk_operation import (
    BulkOperationStart,
    Job,
    QueryRequest,
    SubmitQuery,
    UploadedFile,
)
from src.bulkops.services import artifact_paths
from src.bulkops.services.stage_workers import StageWorkers
from src.bulkops.services.state_machine import (
    CANCELLABLE_STATUSES,
    MANUAL_CANCELLABLE_STATUSES,
    can_transition,
    ensure_step_applicable,
    fail,
    transition,
)
from src.bulkops.services.upload_retry import upload_with_retry

logger = get_logger(__name__)

FILE_UPLOADING_FAILED_REASON = "File uploading failed, reason: {}"


class BulkOperationService:
    """Bulk operation lifecycle - business logic only.

    Long stages are handed to the background executor; the methods that
    start them return the current operation without waiting.
    """

    def __init__(
        self,
        operation_repo: BulkOperationRepository,
        data_processing_repo: DataProcessingRepository,
        execution_repo: ExecutionRepository,
        file_system: RemoteFileSystem,
        data_export_client: DataExportClient,
        bulk_edit_client: BulkEditClient,
        error_service: ErrorService,
        log_files_service: LogFilesService,
        query_service: QueryService,
        entity_type_service: EntityTypeService,
        stage_workers: StageWorkers,
        executor: BackgroundExecutor = background_executor,
        max_retry_count: int | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.operation_repo = operation_repo
        self.data_processing_repo = data_processing_repo
        self.execution_repo = execution_repo
        self.file_system = file_system
        self.data_export_client = data_export_client
        self.bulk_edit_client = bulk_edit_client
        self.error_service = error_service
        self.log_files_service = log_files_service
        self.query_service = query_service
        self.entity_type_service = entity_type_service
        self.stage_workers = stage_workers
        self.executor = executor
        self.max_retry_count = (
            max_retry_count
            if max_retry_count is not None
            else get_settings().file_uploading_max_retry_count
        )
        self.today = today

    async def upload_csv_file(
        self,
        entity_type: EntityType,
        identifier_type: IdentifierType,
        manual: bool,
        operation_id: UUID | None,
        user_id: UUID | None,
        file: UploadedFile,
    ) -> BulkOperation:
        """Store an uploaded CSV file.

        Without manual, the file lists identifiers and a NEW operation is
        created for it. With manual, the file is a user-edited preview of
        the existing operation operation_id.

        Raises:
            NotFoundError: If manual and operation_id is missing or unknown
        """
        error_message: str | None = None

        if manual:
            if operation_id is None:
                raise NotFoundError(
                    FILE_UPLOADING_FAILED_REASON.format(
                        "query parameter operationId is required for csv approach"
                    )
                )
            operation = await self.operation_repo.get_by_id(operation_id)
            if operation is None:
                raise NotFoundError(f"Bulk operation was not found by id={operation_id}")

            try:
                link = await self.file_system.put(
                    file.content, artifact_paths.modified_csv_path(operation.id, self.today())
                )
                operation.link_to_modified_records_csv_file = link

                # The header line is not a record
                num_of_lines = max(await self.file_system.num_of_lines(link) - 1, 0)
                if operation.total_num_of_records == 0:
                    operation.total_num_of_records = num_of_lines
                operation.processed_num_of_records = num_of_lines
                operation.matched_num_of_records = num_of_lines
            except Exception as e:
                logger.exception("Manual file upload failed", operation_id=str(operation.id))
                error_message = FILE_UPLOADING_FAILED_REASON.format(e)
            operation.approach = ApproachType.MANUAL
        else:
            operation = await self.operation_repo.save(
                BulkOperation(
                    entity_type=entity_type,
                    identifier_type=identifier_type,
                    status=OperationStatusType.NEW,
                )
            )
            try:
                operation.link_to_triggering_csv_file = await self.file_system.put(
                    file.content, artifact_paths.triggering_csv_path(operation.id, file.filename)
                )
            except Exception as e:
                logger.exception("Identifiers file upload failed", operation_id=str(operation.id))
                error_message = FILE_UPLOADING_FAILED_REASON.format(e)

        if error_message is not None:
            logger.error(error_message, operation_id=str(operation.id))
            fail(operation, error_message)

        operation.user_id = user_id
        return await self.operation_repo.save(operation)

    async def trigger_by_query(
        self, user_id: UUID | None, query_request: QueryRequest
    ) -> BulkOperation:
        """Create an operation whose identifiers come from a server-side query."""
        submit_query = SubmitQuery(
            fql_query=query_request.fql_query,
            entity_type_id=query_request.entity_type_id,
        )
        query_id = await self.query_service.execute_query(submit_query)
        entity_type = await self.entity_type_service.get_entity_type_by_id(
            submit_query.entity_type_id
        )
        operation = await self.operation_repo.save(
            BulkOperation(
                entity_type=entity_type,
                approach=ApproachType.QUERY,
                identifier_type=IdentifierType.ID,
                status=OperationStatusType.EXECUTING_QUERY,
                user_id=user_id,
                fql_query=submit_query.fql_query,
                fql_query_id=query_id,
                user_friendly_query=query_request.user_friendly_query,
            )
        )
        logger.info("Bulk operation created from query", operation_id=str(operation.id))
        return operation

    async def start_bulk_operation(
        self, bulk_operation_id: UUID, user_id: UUID | None, start: BulkOperationStart
    ) -> BulkOperation:
        """Start the requested step.

        UPLOAD runs inline and fails the operation when it cannot proceed,
        an inapplicable status included. EDIT and COMMIT are dispatched to
        the background executor and the operation is returned as it is now.

        Raises:
            NotFoundError: If the operation does not exist
            BadRequestError: If EDIT or COMMIT cannot start from the current status,
                or UPLOAD is requested for a finished or busy operation
            IllegalOperationStateError: If a stage is still running for it
        """
        operation = await self.get_bulk_operation_or_throw(bulk_operation_id)
        operation.user_id = user_id
        step = start.step

        if step == BulkOperationStep.UPLOAD:
            if self.executor.is_running(operation.id) or not can_transition(
                operation.status, OperationStatusType.FAILED
            ):
                # Finished operations and those a stage owns are left as they are
                ensure_step_applicable(step, operation.status)
            error_message = await self._execute_data_export_job(operation, start.approach)
            if error_message is not None:
                logger.error(error_message, operation_id=str(operation.id))
                fail(operation, error_message)
            return await self.operation_repo.save(operation)

        ensure_step_applicable(step, operation.status)
        with self.executor.reserve(operation.id):
            if step == BulkOperationStep.EDIT:
                await self.error_service.delete_errors_by_bulk_operation_id(operation.id)
                operation.committed_num_of_errors = 0
                if start.approach == ApproachType.MANUAL:
                    self.executor.submit(self.stage_workers.apply, operation, key=operation.id)
                else:
                    await self.log_files_service.remove_modified_files(operation)
                    self.executor.submit(self.stage_workers.confirm, operation, key=operation.id)
            else:
                self.executor.submit(self.stage_workers.commit, operation, key=operation.id)

        logger.info(
            "Bulk operation step dispatched", operation_id=str(operation.id), step=step.value
        )
        return operation

    async def _upload_identifiers(self, operation: BulkOperation, job_id: UUID) -> str:
        link = operation.link_to_triggering_csv_file
        async with self.file_system.get(link) as chunks:
            content = "".join([chunk async for chunk in chunks])
        file = UploadedFile(filename=PurePosixPath(link).name, content=content.encode())
        return await upload_with_retry(self.bulk_edit_client, job_id, file, self.max_retry_count)

    async def _execute_data_export_job(
        self, operation: BulkOperation, approach: ApproachType | None
    ) -> str | None:
        """Create the identifiers export job and hand it the triggering file.

        Returns:
            The error message the operation fails with, None on success
        """
        try:
            ensure_step_applicable(BulkOperationStep.UPLOAD, operation.status)
            if approach == ApproachType.MANUAL:
                return None

            job = await self.data_export_client.upsert_job(
                Job(
                    type=ExportType.BULK_EDIT_IDENTIFIERS,
                    entity_type=operation.entity_type,
                    identifier_type=operation.identifier_type,
                )
            )
            operation.data_export_job_id = job.id
            await self.operation_repo.save(operation)

            if job.status != JobStatus.SCHEDULED:
                status = job.status.value if job.status else None
                return f"File uploading failed - invalid job status: {status} (expected: SCHEDULED)"

            await self._upload_identifiers(operation, job.id)
            job = await self.data_export_client.get_job(job.id)
            if job.status == JobStatus.FAILED:
                raise BulkOperationError("Data export job failed")
            transition(operation, OperationStatusType.RETRIEVING_RECORDS)
        except Exception as e:
            logger.exception("Error starting bulk operation", operation_id=str(operation.id))
            return FILE_UPLOADING_FAILED_REASON.format(e)
        return None

    async def get_operation_by_id(self, bulk_operation_id: UUID) -> BulkOperation:
        """Get an operation, moving it along where reading it is the trigger.

        A running query is polled, saved identifiers are uploaded, and live
        progress overlays processed_num_of_records while a stage runs.
        """
        operation = await self.get_bulk_operation_or_throw(bulk_operation_id)

        if operation.status == OperationStatusType.EXECUTING_QUERY:
            return await self.query_service.check_query_execution_status(operation)

        if operation.status == OperationStatusType.SAVED_IDENTIFIERS:
            return await self.start_bulk_operation(
                operation.id,
                operation.user_id,
                BulkOperationStart(
                    step=BulkOperationStep.UPLOAD,
                    approach=ApproachType.IN_APP,
                    entity_type=operation.entity_type,
                    entity_custom_identifier_type=IdentifierType.ID,
                ),
            )

        if operation.status == OperationStatusType.DATA_MODIFICATION:
            progress = await self.data_processing_repo.get_by_id(bulk_operation_id)
        elif operation.status == OperationStatusType.APPLY_CHANGES:
            progress = await self.execution_repo.get_by_id(bulk_operation_id)
        else:
            return operation

        if progress is not None and progress.status == StatusType.ACTIVE:
            operation.processed_num_of_records = progress.processed_num_of_records
        return operation

    async def get_bulk_operation_or_throw(self, bulk_operation_id: UUID) -> BulkOperation:
        operation = await self.operation_repo.get_by_id(bulk_operation_id)
        if operation is None:
            raise NotFoundError(f"BulkOperation was not found by id={bulk_operation_id}")
        return operation

    async def clear_operation_processing(self, operation: BulkOperation) -> None:
        """Drop the confirm progress and rewind the operation to DATA_MODIFICATION.

        Raises:
            IllegalOperationStateError: If the operation has finished, FAILED
                included; its progress row is kept
        """
        processing = await self.data_processing_repo.get_by_id(operation.id)
        if processing is None:
            return
        if not can_transition(operation.status, OperationStatusType.DATA_MODIFICATION):
            raise IllegalOperationStateError(
                f"Bulk operation with status {operation.status.value} cannot be rewound"
            )
        await self.data_processing_repo.delete_by_id(operation.id)
        transition(operation, OperationStatusType.DATA_MODIFICATION)
        await self.operation_repo.save(operation)

    async def cancel_operation_by_id(self, bulk_operation_id: UUID) -> None:
        """Remove the files of an operation that no stage is working on.

        Raises:
            NotFoundError: If the operation does not exist
            IllegalOperationStateError: If the status does not allow cancelling
        """
        operation = await self.get_bulk_operation_or_throw(bulk_operation_id)

        idle = not self.executor.is_running(operation.id)

        if idle and operation.status in CANCELLABLE_STATUSES:
            await self.log_files_service.remove_triggering_and_matched_records_files(operation)
        elif (
            idle
            and operation.status in MANUAL_CANCELLABLE_STATUSES
            and operation.approach == ApproachType.MANUAL
        ):
            await self.log_files_service.remove_modified_files(operation)
        else:
            raise IllegalOperationStateError(
                f"Operation with status {operation.status.value} cannot be cancelled"
            )
        await self.operation_repo.save(operation)
