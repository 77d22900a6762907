"""Integration test fixtures for database operations.

These fixtures require a PostgreSQL database at DATABASE_URL. Tests in this
directory are skipped unless RUN_INTEGRATION_TESTS=1.
"""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from src.bulkops.core.config import get_settings
from src.bulkops.core.db import SessionFactory
from src.bulkops.repositories import (
    BulkOperationRepository,
    DataProcessingRepository,
    ExecutionRepository,
)


def pytest_collection_modifyitems(config, items):
    if os.environ.get("RUN_INTEGRATION_TESTS") == "1":
        return
    skip = pytest.mark.skip(reason="set RUN_INTEGRATION_TESTS=1 to run against PostgreSQL")
    for item in items:
        if "integration" in item.nodeid.split("/"):
            item.add_marker(skip)


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine with the bulk operation tables."""
    test_engine = create_async_engine(get_settings().database_url, poolclass=NullPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> SessionFactory:
    """Short-lived sessions bound to the test engine."""
    maker = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    @asynccontextmanager
    async def factory() -> AsyncGenerator[AsyncSession]:
        async with maker() as session:
            yield session

    return factory


@pytest.fixture
def operation_repo(session_factory) -> BulkOperationRepository:
    return BulkOperationRepository(session_factory)


@pytest.fixture
def data_processing_repo(session_factory) -> DataProcessingRepository:
    return DataProcessingRepository(session_factory)


@pytest.fixture
def execution_repo(session_factory) -> ExecutionRepository:
    return ExecutionRepository(session_factory)
