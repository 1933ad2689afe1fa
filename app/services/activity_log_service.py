"""
Staff activity log sink.

Entries are written after the business transaction has committed, inside a
savepoint of their own. A failure to record activity is logged and swallowed:
only the savepoint is rolled back, so instances the caller already loaded
stay readable and the operation is still reported as done.
"""

from __future__ import annotations
from typing import Any, Optional, Union
from uuid import UUID
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.repositories.activity_log_repository import ActivityLogRepository

logger = logging.getLogger(__name__)


class ActivityLogService:

    def __init__(self, activity_repo: Optional[ActivityLogRepository] = None):
        self.activity_repo = activity_repo or ActivityLogRepository()

    async def log(
        self,
        db: AsyncSession,
        action: str,
        resource_type: str,
        resource_id: Union[UUID, str],
        actor_id: Optional[UUID] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Record one activity entry.

        Never raises for database errors and never rolls back the session's
        outer transaction.

        Example:
            await activity_service.log(
                db, "pipeline_stage_changed", "pipeline_entry", entry.id,
                actor_id=user.id, details={"from_stage": "offer", "to_stage": "accepted"}
            )
        """
        try:
            async with db.begin_nested():
                await self.activity_repo.create(db, {
                    "action": action,
                    "resource_type": resource_type,
                    "resource_id": str(resource_id),
                    "actor_id": actor_id,
                    "details": jsonable_encoder(details) if details else None,
                })
            await db.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to record activity {action} for {resource_type}:{resource_id}: {e}")
