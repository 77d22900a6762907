"""Base repository with common CRUD operations."""

from typing import Any

from sqlmodel import SQLModel

from src.bulkops.core.db import SessionFactory, get_session


class BaseRepository[ModelType: SQLModel]:
    """Base repository providing common database operations.

    Every call opens its own short-lived session and commits it, so a
    repository can be used from a background stage after the request that
    created it has finished. Writes are last-writer-wins upserts.
    """

    model: type[ModelType]

    def __init__(self, session_factory: SessionFactory = get_session):
        self.session_factory = session_factory

    async def get_by_id(self, id: Any) -> ModelType | None:
        """Get a record by its primary key."""
        async with self.session_factory() as session:
            return await session.get(self.model, id)

    async def save(self, entity: ModelType) -> ModelType:
        """Insert or update entity and commit.

        Returns:
            The persisted state, detached from the session
        """
        async with self.session_factory() as session:
            merged = await session.merge(entity)
            await session.commit()
            return merged

    async def delete_by_id(self, id: Any) -> bool:
        """Delete a record by its primary key.

        Returns:
            True if a record was deleted, False if none existed
        """
        async with self.session_factory() as session:
            entity = await session.get(self.model, id)
            if entity is None:
                return False
            await session.delete(entity)
            await session.commit()
            return True
