"""
Base repository implementing common CRUD operations using SQLAlchemy 2.0.

Repositories never commit: the calling service owns the transaction so that
several writes (stage change, audit record, placement) land together or not
at all. SQLAlchemy errors are logged and re-raised for the service to map
onto domain errors.
"""

from __future__ import annotations
from typing import Any, Generic, TypeVar, Type, Optional
from uuid import UUID
from sqlalchemy import select, func, update as sql_update, delete as sql_delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)

# Generic type variable for the model
T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Generic base repository for CRUD operations.

    Type Parameters:
        T: The SQLAlchemy model type this repository manages

    Example:
        class CandidateRepository(BaseRepository[Candidate]):
            def __init__(self):
                super().__init__(Candidate)
    """

    def __init__(self, model: Type[T]):
        self.model = model

    async def get(
        self,
        db: AsyncSession,
        id: UUID
    ) -> Optional[T]:
        """Retrieve a single record by ID, or None."""
        try:
            stmt = select(self.model).where(self.model.id == id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {self.model.__name__} by id {id}: {e}")
            raise

    async def get_many(
        self,
        db: AsyncSession,
        ids: list[UUID]
    ) -> list[T]:
        if not ids:
            return []
        try:
            stmt = select(self.model).where(self.model.id.in_(ids))
            result = await db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {len(ids)} {self.model.__name__} records: {e}")
            raise

    async def create(
        self,
        db: AsyncSession,
        obj_in: dict
    ) -> T:
        """
        Add a new record and flush it so server defaults are populated.

        Example:
            entry = await repo.create(db, {"job_id": job_id, "candidate_id": cid})
            await db.commit()
        """
        try:
            db_obj = self.model(**obj_in)
            db.add(db_obj)
            await db.flush()
            await db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise

    async def update(
        self,
        db: AsyncSession,
        db_obj: T,
        obj_in: dict
    ) -> T:
        """Unconditionally set the given attributes on a loaded record."""
        try:
            for field, value in obj_in.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)

            await db.flush()
            await db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.model.__name__}: {e}")
            raise

    async def conditional_update(
        self,
        db: AsyncSession,
        id: UUID,
        expected_version: int,
        values: dict[str, Any]
    ) -> bool:
        """
        Compare-and-swap write keyed on the ``version`` column.

        The row is updated (and its version bumped) only if its version still
        equals ``expected_version``.

        Returns:
            True if the row was written, False if another writer got there first
        """
        try:
            stmt = (
                sql_update(self.model)
                .where(self.model.id == id, self.model.version == expected_version)
                .values(**values, version=expected_version + 1)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            return result.rowcount == 1
        except SQLAlchemyError as e:
            logger.error(f"Error conditionally updating {self.model.__name__} {id}: {e}")
            raise

    async def delete(
        self,
        db: AsyncSession,
        id: UUID
    ) -> bool:
        """Delete a record by ID. Returns False if nothing matched."""
        try:
            stmt = sql_delete(self.model).where(self.model.id == id)
            result = await db.execute(stmt)
            await db.flush()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {self.model.__name__} with id {id}: {e}")
            raise

    async def exists(
        self,
        db: AsyncSession,
        id: UUID
    ) -> bool:
        try:
            stmt = select(func.count()).select_from(self.model).where(self.model.id == id)
            result = await db.execute(stmt)
            return result.scalar_one() > 0
        except SQLAlchemyError as e:
            logger.error(f"Error checking existence of {self.model.__name__} with id {id}: {e}")
            raise
