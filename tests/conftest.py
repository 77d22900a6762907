"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os

os.environ.setdefault("APP_ENV", "testing")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from src.bulkops.clients.local_storage import LocalFileSystem
from src.bulkops.core.config import get_settings
from src.bulkops.core.executor import BackgroundExecutor
from src.bulkops.core.request_context import clear_request_context
from src.bulkops.models import EntityType
from src.bulkops.services import BulkOperationService, StageWorkers
from tests.fakes import (
    FakeBulkEditClient,
    FakeBulkOperationRepository,
    FakeDataExportClient,
    FakeEntityTypeService,
    FakeErrorService,
    FakeLogFilesService,
    FakeProgressRepository,
    FakeQueryService,
    FakeRecordUpdateService,
    FakeRuleService,
    UppercaseUsernameProcessor,
)
from tests.helpers import TODAY

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _clean_request_context() -> None:
    clear_request_context()
    yield
    clear_request_context()


# --- Storage and executor ---


@pytest.fixture
def storage_path(tmp_path: Path) -> Path:
    return tmp_path / "storage"


@pytest.fixture
def file_system(storage_path: Path) -> LocalFileSystem:
    """Real local file system rooted in a temporary directory."""
    return LocalFileSystem(storage_path)


@pytest.fixture
async def executor() -> AsyncGenerator[BackgroundExecutor]:
    """Executor private to the test; drained so no stage outlives it."""
    test_executor = BackgroundExecutor()
    yield test_executor
    await test_executor.drain(timeout=5)


# --- Repositories and collaborators ---


@pytest.fixture
def operation_repo() -> FakeBulkOperationRepository:
    return FakeBulkOperationRepository()


@pytest.fixture
def data_processing_repo() -> FakeProgressRepository:
    return FakeProgressRepository()


@pytest.fixture
def execution_repo() -> FakeProgressRepository:
    return FakeProgressRepository()


@pytest.fixture
def error_service(
    operation_repo: FakeBulkOperationRepository, file_system: LocalFileSystem
) -> FakeErrorService:
    return FakeErrorService(operation_repo, file_system)


@pytest.fixture
def processor() -> UppercaseUsernameProcessor:
    return UppercaseUsernameProcessor()


@pytest.fixture
def rule_service() -> FakeRuleService:
    return FakeRuleService()


@pytest.fixture
def record_update_service() -> FakeRecordUpdateService:
    return FakeRecordUpdateService()


@pytest.fixture
def data_export_client() -> FakeDataExportClient:
    return FakeDataExportClient()


@pytest.fixture
def bulk_edit_client() -> FakeBulkEditClient:
    return FakeBulkEditClient()


@pytest.fixture
def query_service() -> FakeQueryService:
    return FakeQueryService()


@pytest.fixture
def log_files_service() -> FakeLogFilesService:
    return FakeLogFilesService()


# --- Orchestrator ---


@pytest.fixture
def stage_workers(
    operation_repo,
    data_processing_repo,
    execution_repo,
    file_system,
    rule_service,
    processor,
    record_update_service,
    error_service,
) -> StageWorkers:
    return StageWorkers(
        operation_repo=operation_repo,
        data_processing_repo=data_processing_repo,
        execution_repo=execution_repo,
        file_system=file_system,
        rule_service=rule_service,
        data_processors={EntityType.USER: processor},
        record_update_service=record_update_service,
        error_service=error_service,
        today=lambda: TODAY,
    )


@pytest.fixture
def service(
    operation_repo,
    data_processing_repo,
    execution_repo,
    file_system,
    data_export_client,
    bulk_edit_client,
    error_service,
    log_files_service,
    query_service,
    stage_workers,
    executor,
) -> BulkOperationService:
    return BulkOperationService(
        operation_repo=operation_repo,
        data_processing_repo=data_processing_repo,
        execution_repo=execution_repo,
        file_system=file_system,
        data_export_client=data_export_client,
        bulk_edit_client=bulk_edit_client,
        error_service=error_service,
        log_files_service=log_files_service,
        query_service=query_service,
        entity_type_service=FakeEntityTypeService(),
        stage_workers=stage_workers,
        executor=executor,
        max_retry_count=3,
        today=lambda: TODAY,
    )
