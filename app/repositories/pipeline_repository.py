"""
Pipeline repository: pipeline entries and their stage-transition audit trail.
"""

from __future__ import annotations
from typing import Optional
from uuid import UUID
from sqlalchemy import select, func, delete as sql_delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.models.pipeline import PipelineEntry, StageTransitionRecord
from .base import BaseRepository

logger = logging.getLogger(__name__)


class PipelineRepository(BaseRepository[PipelineEntry]):
    """
    Repository for PipelineEntry with job/candidate lookups.

    Stage changes go through ``conditional_update`` only; there is no
    unconditional stage setter.
    """

    def __init__(self):
        super().__init__(PipelineEntry)

    async def get_for_job_and_candidate(
        self,
        db: AsyncSession,
        job_id: UUID,
        candidate_id: UUID
    ) -> Optional[PipelineEntry]:
        try:
            stmt = select(PipelineEntry).where(
                PipelineEntry.job_id == job_id,
                PipelineEntry.candidate_id == candidate_id,
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching pipeline entry for job {job_id}, candidate {candidate_id}: {e}")
            raise

    async def list_entries(
        self,
        db: AsyncSession,
        job_id: Optional[UUID] = None,
        stage: Optional[str] = None,
        candidate_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 100
    ) -> tuple[list[PipelineEntry], int]:
        """
        Filtered, paginated entries ordered by priority then recency.

        Returns:
            Tuple of (entries, total count before pagination)
        """
        try:
            stmt = select(PipelineEntry)
            if job_id is not None:
                stmt = stmt.where(PipelineEntry.job_id == job_id)
            if candidate_id is not None:
                stmt = stmt.where(PipelineEntry.candidate_id == candidate_id)
            if stage:
                stmt = stmt.where(PipelineEntry.stage == stage)

            count_stmt = select(func.count()).select_from(stmt.subquery())
            total = (await db.execute(count_stmt)).scalar_one()

            stmt = (
                stmt.order_by(PipelineEntry.priority.desc(), PipelineEntry.created_at.desc())
                .offset(skip)
                .limit(limit)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all()), total
        except SQLAlchemyError as e:
            logger.error(f"Error listing pipeline entries (job={job_id}, stage={stage}): {e}")
            raise

    async def list_ids_for_candidate(
        self,
        db: AsyncSession,
        candidate_id: UUID
    ) -> list[UUID]:
        try:
            stmt = select(PipelineEntry.id).where(PipelineEntry.candidate_id == candidate_id)
            result = await db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing pipeline entries for candidate {candidate_id}: {e}")
            raise

    async def delete_for_candidate(
        self,
        db: AsyncSession,
        candidate_id: UUID
    ) -> int:
        try:
            stmt = sql_delete(PipelineEntry).where(PipelineEntry.candidate_id == candidate_id)
            result = await db.execute(stmt)
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting pipeline entries for candidate {candidate_id}: {e}")
            raise


class StageTransitionRepository(BaseRepository[StageTransitionRecord]):
    """Append-only: exposes create and reads, never update or delete."""

    def __init__(self):
        super().__init__(StageTransitionRecord)

    async def append(
        self,
        db: AsyncSession,
        record: dict
    ) -> StageTransitionRecord:
        return await self.create(db, record)

    async def history(
        self,
        db: AsyncSession,
        pipeline_entry_id: UUID
    ) -> list[StageTransitionRecord]:
        """Records for one entry, oldest first."""
        try:
            stmt = (
                select(StageTransitionRecord)
                .where(StageTransitionRecord.pipeline_entry_id == pipeline_entry_id)
                .order_by(StageTransitionRecord.timestamp_utc.asc())
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error fetching transition history for {pipeline_entry_id}: {e}")
            raise

    async def update(self, db, db_obj, obj_in):  # type: ignore[override]
        raise TypeError("Stage transition records are immutable")

    async def delete(self, db, id):  # type: ignore[override]
        raise TypeError("Stage transition records are immutable")
