"""
Placement and interview scorecard repositories.
"""

from __future__ import annotations
from typing import Optional
from uuid import UUID
from sqlalchemy import select, delete as sql_delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.models.placement import Placement
from app.models.scorecard import InterviewScorecard
from .base import BaseRepository

logger = logging.getLogger(__name__)


class PlacementRepository(BaseRepository[Placement]):

    def __init__(self):
        super().__init__(Placement)

    async def get_for_entry(
        self,
        db: AsyncSession,
        pipeline_entry_id: UUID
    ) -> Optional[Placement]:
        try:
            stmt = select(Placement).where(Placement.pipeline_entry_id == pipeline_entry_id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching placement for entry {pipeline_entry_id}: {e}")
            raise

    async def list_all(self, db: AsyncSession) -> list[Placement]:
        try:
            result = await db.execute(select(Placement).order_by(Placement.start_date.desc()))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing placements: {e}")
            raise

    async def delete_for_entries(
        self,
        db: AsyncSession,
        pipeline_entry_ids: list[UUID]
    ) -> int:
        if not pipeline_entry_ids:
            return 0
        try:
            stmt = sql_delete(Placement).where(Placement.pipeline_entry_id.in_(pipeline_entry_ids))
            result = await db.execute(stmt)
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting placements for {len(pipeline_entry_ids)} entries: {e}")
            raise


class ScorecardRepository(BaseRepository[InterviewScorecard]):

    def __init__(self):
        super().__init__(InterviewScorecard)

    async def latest_for_stage(
        self,
        db: AsyncSession,
        pipeline_entry_id: UUID,
        stage: str
    ) -> Optional[InterviewScorecard]:
        try:
            stmt = (
                select(InterviewScorecard)
                .where(
                    InterviewScorecard.pipeline_entry_id == pipeline_entry_id,
                    InterviewScorecard.stage == stage,
                )
                .order_by(InterviewScorecard.created_at.desc())
                .limit(1)
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching scorecard for entry {pipeline_entry_id} at {stage}: {e}")
            raise

    async def delete_for_entries(
        self,
        db: AsyncSession,
        pipeline_entry_ids: list[UUID]
    ) -> int:
        if not pipeline_entry_ids:
            return 0
        try:
            stmt = sql_delete(InterviewScorecard).where(
                InterviewScorecard.pipeline_entry_id.in_(pipeline_entry_ids)
            )
            result = await db.execute(stmt)
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting scorecards for {len(pipeline_entry_ids)} entries: {e}")
            raise
