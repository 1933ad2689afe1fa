from __future__ import annotations
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.models.activity_log import ActivityLog
from .base import BaseRepository

logger = logging.getLogger(__name__)


class ActivityLogRepository(BaseRepository[ActivityLog]):

    def __init__(self):
        super().__init__(ActivityLog)

    async def list_for_resource(
        self,
        db: AsyncSession,
        resource_type: str,
        resource_id: str,
        action: Optional[str] = None
    ) -> list[ActivityLog]:
        try:
            stmt = select(ActivityLog).where(
                ActivityLog.resource_type == resource_type,
                ActivityLog.resource_id == resource_id,
            )
            if action:
                stmt = stmt.where(ActivityLog.action == action)
            result = await db.execute(stmt.order_by(ActivityLog.created_at.asc()))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing activity for {resource_type}:{resource_id}: {e}")
            raise
