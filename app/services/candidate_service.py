"""
Candidate service: GDPR retention, anonymisation, deletion and duplicate
detection.

Anonymisation is one-way. Once ``anonymised_at`` is set the identity fields
hold placeholders and identity edits are refused.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.core.exceptions import (
    CandidateAnonymised,
    InvalidFields,
    NotFound,
    PersistenceFailure,
    PipelineError,
)
from app.models.candidate import Candidate
from app.repositories.candidate_repository import CandidateRepository
from app.repositories.pipeline_repository import PipelineRepository
from app.repositories.placement_repository import PlacementRepository, ScorecardRepository
from app.services.activity_log_service import ActivityLogService
from app.services.duplicate_matcher import MatchResult, find_duplicates as match_duplicates
from app.services.gdpr_clock import GDPRState, GDPRStatus, classify

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous Candidate"
ANONYMOUS_PHONE = "0000000000"
ANONYMOUS_EMAIL_DOMAIN = "anonymised.local"

IDENTITY_FIELDS = ("name", "email", "phone")


def anonymous_email(candidate_id: Union[UUID, str]) -> str:
    """
    Example:
        >>> anonymous_email("3f2a9c1e-0000-0000-0000-000000000000")
        'anonymous-3f2a9c1e@anonymised.local'
    """
    return f"anonymous-{str(candidate_id)[:8]}@{ANONYMOUS_EMAIL_DOMAIN}"


@dataclass
class BulkResult:
    success: int = 0
    failed: int = 0
    failed_ids: list[UUID] = field(default_factory=list)


class CandidateService:

    def __init__(
        self,
        candidate_repo: Optional[CandidateRepository] = None,
        pipeline_repo: Optional[PipelineRepository] = None,
        placement_repo: Optional[PlacementRepository] = None,
        scorecard_repo: Optional[ScorecardRepository] = None,
        activity_service: Optional[ActivityLogService] = None
    ):
        self.candidate_repo = candidate_repo or CandidateRepository()
        self.pipeline_repo = pipeline_repo or PipelineRepository()
        self.placement_repo = placement_repo or PlacementRepository()
        self.scorecard_repo = scorecard_repo or ScorecardRepository()
        self.activity_service = activity_service or ActivityLogService()

    async def get_candidate(self, db: AsyncSession, candidate_id: UUID) -> Candidate:
        candidate = await self.candidate_repo.get(db, candidate_id)
        if not candidate:
            raise NotFound(f"Candidate {candidate_id} not found", {"candidate_id": str(candidate_id)})
        return candidate

    def gdpr_status(
        self,
        candidate: Candidate,
        now: Union[date, datetime, None] = None
    ) -> GDPRStatus:
        return classify(candidate.last_contact_date, now)

    async def gdpr_summary(
        self,
        db: AsyncSession,
        now: Union[date, datetime, None] = None
    ) -> dict[str, int]:
        """Counts per GDPR status over candidates that are not yet anonymised."""
        now = now or datetime.now(timezone.utc)
        counts = {state.value: 0 for state in GDPRState}
        rows = await self.candidate_repo.list_contact_dates(db)
        for _, last_contact_date in rows:
            counts[classify(last_contact_date, now).status.value] += 1
        counts["total"] = len(rows)
        return counts

    async def anonymise(
        self,
        db: AsyncSession,
        candidate_id: UUID,
        actor_id: Optional[UUID] = None,
        notes: str = "Anonymised per GDPR request"
    ) -> Candidate:
        """
        Replace personal data with placeholders.

        Calling it again on an anonymised candidate changes nothing.
        """
        candidate = await self._anonymise(db, candidate_id, notes)
        await self.activity_service.log(
            db, "candidate_anonymised", "candidate", candidate_id, actor_id,
            {"reason": "GDPR request"},
        )
        return candidate

    async def delete_candidate(
        self,
        db: AsyncSession,
        candidate_id: UUID,
        actor_id: Optional[UUID] = None
    ) -> None:
        """Delete a candidate together with their pipeline entries, placements and scorecards."""
        await self._delete(db, candidate_id)
        await self.activity_service.log(
            db, "candidate_deleted", "candidate", candidate_id, actor_id, {"reason": "GDPR request"}
        )

    async def bulk_anonymise(
        self,
        db: AsyncSession,
        candidate_ids: Iterable[UUID],
        actor_id: Optional[UUID] = None
    ) -> BulkResult:
        """
        Anonymise each candidate in its own transaction.

        A failing id is counted and skipped; the batch always runs to the end.
        """
        result = BulkResult()
        for candidate_id in candidate_ids:
            try:
                await self._anonymise(db, candidate_id, "Bulk anonymised for GDPR compliance")
                result.success += 1
            except PipelineError as e:
                logger.warning(f"Bulk anonymise skipped candidate {candidate_id}: {e.message}")
                result.failed += 1
                result.failed_ids.append(candidate_id)

        await self.activity_service.log(
            db, "bulk_gdpr_anonymise", "candidate", "bulk", actor_id,
            {"count": result.success, "failed": result.failed},
        )
        return result

    async def bulk_delete(
        self,
        db: AsyncSession,
        candidate_ids: Iterable[UUID],
        actor_id: Optional[UUID] = None
    ) -> BulkResult:
        result = BulkResult()
        for candidate_id in candidate_ids:
            try:
                await self._delete(db, candidate_id)
                result.success += 1
            except PipelineError as e:
                logger.warning(f"Bulk delete skipped candidate {candidate_id}: {e.message}")
                result.failed += 1
                result.failed_ids.append(candidate_id)

        await self.activity_service.log(
            db, "bulk_gdpr_delete", "candidate", "bulk", actor_id,
            {"count": result.success, "failed": result.failed},
        )
        return result

    async def update_identity(
        self,
        db: AsyncSession,
        candidate_id: UUID,
        changes: Mapping[str, Any],
        actor_id: Optional[UUID] = None
    ) -> Candidate:
        """
        Edit name, email or phone.

        Raises:
            CandidateAnonymised: The candidate has been anonymised
            InvalidFields: A required identity field was blanked
        """
        candidate = await self.get_candidate(db, candidate_id)
        if candidate.is_anonymised:
            raise CandidateAnonymised(
                "Anonymised candidates cannot be edited",
                {"candidate_id": str(candidate_id)},
            )

        values = {key: changes[key] for key in IDENTITY_FIELDS if key in changes}
        blank = {key: "cannot be empty" for key in ("name", "email") if key in values and not (values[key] or "").strip()}
        if blank:
            raise InvalidFields("Name and email are required", {"invalid_fields": blank})
        if not values:
            return candidate

        try:
            candidate = await self.candidate_repo.update(db, candidate, values)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error updating candidate {candidate_id}: {e}")
            raise PersistenceFailure("Failed to update candidate") from e

        await self.activity_service.log(
            db, "candidate_updated", "candidate", candidate_id, actor_id, {"changed": sorted(values)}
        )
        return candidate

    async def touch_contact(
        self,
        db: AsyncSession,
        candidate_id: UUID,
        when: Optional[datetime] = None
    ) -> Candidate:
        """Record a contact with the candidate. Only last_contact_date changes."""
        candidate = await self.get_candidate(db, candidate_id)
        try:
            candidate = await self.candidate_repo.update(
                db, candidate, {"last_contact_date": when or datetime.now(timezone.utc)}
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error recording contact for candidate {candidate_id}: {e}")
            raise PersistenceFailure("Failed to record contact") from e
        return candidate

    async def find_duplicates(
        self,
        db: AsyncSession,
        candidate_id: UUID
    ) -> list[tuple[Candidate, MatchResult]]:
        candidate = await self.get_candidate(db, candidate_id)
        if candidate.is_anonymised:
            return []
        pool = await self.candidate_repo.find_duplicate_pool(db, candidate)
        return match_duplicates(candidate, pool)

    async def flag_duplicate(
        self,
        db: AsyncSession,
        candidate_id: UUID,
        duplicate_of_id: Optional[UUID],
        actor_id: Optional[UUID] = None
    ) -> Candidate:
        """
        Mark ``candidate_id`` as a potential duplicate of ``duplicate_of_id``.

        Passing None clears the flag.
        """
        candidate = await self.get_candidate(db, candidate_id)
        if duplicate_of_id is not None:
            if duplicate_of_id == candidate_id:
                raise InvalidFields(
                    "A candidate cannot duplicate itself",
                    {"invalid_fields": {"duplicate_of": "must reference another candidate"}},
                )
            await self.get_candidate(db, duplicate_of_id)

        try:
            candidate = await self.candidate_repo.update(db, candidate, {"potential_duplicate_of": duplicate_of_id})
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error flagging duplicate for candidate {candidate_id}: {e}")
            raise PersistenceFailure("Failed to flag duplicate") from e

        await self.activity_service.log(
            db, "candidate_duplicate_flagged", "candidate", candidate_id, actor_id,
            {"duplicate_of": duplicate_of_id},
        )
        return candidate

    async def _anonymise(self, db: AsyncSession, candidate_id: UUID, notes: str) -> Candidate:
        candidate = await self.get_candidate(db, candidate_id)
        if candidate.is_anonymised:
            return candidate

        try:
            candidate = await self.candidate_repo.update(db, candidate, {
                "name": ANONYMOUS_NAME,
                "email": anonymous_email(candidate.id),
                "phone": ANONYMOUS_PHONE,
                "admin_notes": None,
                "gdpr_notes": notes,
                "anonymised_at": datetime.now(timezone.utc),
                "current_salary": None,
                "salary_expectation": None,
                "employment_history": [],
                "qualifications": [],
                "skills": None,
                "experience_summary": None,
                "ai_profile": None,
                "ai_reasoning": None,
                "confidence_score": None,
                "suggested_status": None,
            })
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error anonymising candidate {candidate_id}: {e}")
            raise PersistenceFailure("Failed to anonymise candidate", {"candidate_id": str(candidate_id)}) from e

        logger.info(f"Candidate {candidate_id} anonymised")
        return candidate

    async def _delete(self, db: AsyncSession, candidate_id: UUID) -> None:
        candidate = await self.get_candidate(db, candidate_id)
        try:
            entry_ids = await self.pipeline_repo.list_ids_for_candidate(db, candidate.id)
            await self.placement_repo.delete_for_entries(db, entry_ids)
            await self.scorecard_repo.delete_for_entries(db, entry_ids)
            await self.pipeline_repo.delete_for_candidate(db, candidate.id)
            await self.candidate_repo.delete(db, candidate.id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error deleting candidate {candidate_id}: {e}")
            raise PersistenceFailure("Failed to delete candidate", {"candidate_id": str(candidate_id)}) from e

        logger.info(f"Candidate {candidate_id} deleted with {len(entry_ids)} pipeline entries")


candidate_service = CandidateService()
