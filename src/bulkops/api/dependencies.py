"""Service factory dependencies.

Concrete repositories, storage, file cleanup and downstream clients come
from settings; the rule engine, record update, error and query collaborators
are supplied by the host that embeds the orchestrator.
"""

from collections.abc import Mapping
from functools import lru_cache

from src.bulkops.clients import (
    HttpBulkEditClient,
    HttpDataExportClient,
    LocalFileSystem,
    StorageLogFilesService,
    get_http_client,
)
from src.bulkops.clients.protocols import (
    DataProcessor,
    EntityTypeService,
    ErrorService,
    LogFilesService,
    QueryService,
    RecordUpdateService,
    RuleService,
)
from src.bulkops.core.config import get_settings
from src.bulkops.models import EntityType
from src.bulkops.repositories import (
    BulkOperationRepository,
    DataProcessingRepository,
    ExecutionRepository,
)
from src.bulkops.services import BulkOperationService, StageWorkers


def get_operation_repo() -> BulkOperationRepository:
    return BulkOperationRepository()


def get_data_processing_repo() -> DataProcessingRepository:
    return DataProcessingRepository()


def get_execution_repo() -> ExecutionRepository:
    return ExecutionRepository()


@lru_cache
def get_file_system() -> LocalFileSystem:
    """Get the artifact store rooted at settings.storage_path."""
    return LocalFileSystem(get_settings().storage_path)


def get_data_export_client() -> HttpDataExportClient:
    return HttpDataExportClient(get_http_client())


def get_bulk_edit_client() -> HttpBulkEditClient:
    return HttpBulkEditClient(get_http_client())


def build_bulk_operation_service(
    *,
    rule_service: RuleService,
    data_processors: Mapping[EntityType, DataProcessor],
    record_update_service: RecordUpdateService,
    error_service: ErrorService,
    query_service: QueryService,
    entity_type_service: EntityTypeService,
    log_files_service: LogFilesService | None = None,
    operation_repo: BulkOperationRepository | None = None,
    data_processing_repo: DataProcessingRepository | None = None,
    execution_repo: ExecutionRepository | None = None,
    file_system: LocalFileSystem | None = None,
    data_export_client: HttpDataExportClient | None = None,
    bulk_edit_client: HttpBulkEditClient | None = None,
) -> BulkOperationService:
    """Get bulk operation service wired to the configured infrastructure."""
    operation_repo = operation_repo or get_operation_repo()
    data_processing_repo = data_processing_repo or get_data_processing_repo()
    execution_repo = execution_repo or get_execution_repo()
    file_system = file_system or get_file_system()

    stage_workers = StageWorkers(
        operation_repo=operation_repo,
        data_processing_repo=data_processing_repo,
        execution_repo=execution_repo,
        file_system=file_system,
        rule_service=rule_service,
        data_processors=data_processors,
        record_update_service=record_update_service,
        error_service=error_service,
    )
    return BulkOperationService(
        operation_repo=operation_repo,
        data_processing_repo=data_processing_repo,
        execution_repo=execution_repo,
        file_system=file_system,
        data_export_client=data_export_client or get_data_export_client(),
        bulk_edit_client=bulk_edit_client or get_bulk_edit_client(),
        error_service=error_service,
        log_files_service=log_files_service or StorageLogFilesService(file_system),
        query_service=query_service,
        entity_type_service=entity_type_service,
        stage_workers=stage_workers,
    )
