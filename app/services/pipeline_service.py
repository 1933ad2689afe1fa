"""
Pipeline service: the only code path that changes a pipeline entry's stage.

A stage change is validated by ``transition_validator.validate`` and then
persisted in a single transaction made of three writes:

    1. a conditional UPDATE of the entry keyed on its ``version``
    2. a Placement row when the entry reaches ``placed``
    3. an append-only StageTransitionRecord

Activity logging happens after the commit and never fails the request.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union
from uuid import UUID
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import structlog

from app.core.config import settings
from app.core.exceptions import (
    CandidateAnonymised,
    Conflict,
    DuplicateEntry,
    IllegalTransition,
    InvalidFields,
    NotFound,
    PersistenceFailure,
)
from app.models.pipeline import PipelineEntry, StageTransitionRecord
from app.models.placement import Placement
from app.models.scorecard import InterviewScorecard
from app.repositories.candidate_repository import CandidateRepository
from app.repositories.job_repository import JobRepository
from app.repositories.pipeline_repository import PipelineRepository, StageTransitionRepository
from app.repositories.placement_repository import PlacementRepository, ScorecardRepository
from app.services.activity_log_service import ActivityLogService
from app.services.transition_validator import AcceptedTransition, is_empty, validate
from app.utils.stage_graph import (
    INITIAL_STAGE,
    INTERVIEW_STAGES,
    PipelineStage,
    STAGE_LABELS,
    allowed_next,
    required_fields,
    to_stage,
)

logger = structlog.get_logger(__name__)

# Entering one of these stages means the recruiter spoke to the candidate
CONTACT_STAGES = frozenset({
    PipelineStage.CONTACTED,
    PipelineStage.QUALIFIED,
    PipelineStage.SUBMITTED,
    PipelineStage.INTERVIEW_1,
    PipelineStage.INTERVIEW_2,
    PipelineStage.FINAL,
    PipelineStage.OFFER,
    PipelineStage.ACCEPTED,
})

EDITABLE_METADATA = ("notes", "priority", "assigned_to")


@dataclass
class TransitionOutcome:
    entry: PipelineEntry
    record: StageTransitionRecord
    placement: Optional[Placement] = None


class PipelineService:
    """
    Coordinates pipeline repositories, the transition validator and the
    activity log.

    All methods take the request's AsyncSession; the service owns commit and
    rollback. Domain failures are raised as ``PipelineError`` subclasses.
    """

    def __init__(
        self,
        pipeline_repo: Optional[PipelineRepository] = None,
        transition_repo: Optional[StageTransitionRepository] = None,
        placement_repo: Optional[PlacementRepository] = None,
        scorecard_repo: Optional[ScorecardRepository] = None,
        candidate_repo: Optional[CandidateRepository] = None,
        job_repo: Optional[JobRepository] = None,
        activity_service: Optional[ActivityLogService] = None
    ):
        self.pipeline_repo = pipeline_repo or PipelineRepository()
        self.transition_repo = transition_repo or StageTransitionRepository()
        self.placement_repo = placement_repo or PlacementRepository()
        self.scorecard_repo = scorecard_repo or ScorecardRepository()
        self.candidate_repo = candidate_repo or CandidateRepository()
        self.job_repo = job_repo or JobRepository()
        self.activity_service = activity_service or ActivityLogService()

    async def get_entry(self, db: AsyncSession, entry_id: UUID) -> PipelineEntry:
        entry = await self.pipeline_repo.get(db, entry_id)
        if not entry:
            raise NotFound(f"Pipeline entry {entry_id} not found", {"entry_id": str(entry_id)})
        return entry

    async def list_entries(
        self,
        db: AsyncSession,
        job_id: Optional[UUID] = None,
        stage: Union[PipelineStage, str, None] = None,
        candidate_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 50
    ) -> tuple[list[PipelineEntry], int]:
        stage_value = to_stage(stage).value if stage else None
        return await self.pipeline_repo.list_entries(
            db, job_id=job_id, stage=stage_value, candidate_id=candidate_id, skip=skip, limit=limit
        )

    async def get_history(self, db: AsyncSession, entry_id: UUID) -> list[StageTransitionRecord]:
        """
        Audit trail for an entry, oldest first.

        The trail outlives the entry, so history of a deleted entry is still
        returned.
        """
        records = await self.transition_repo.history(db, entry_id)
        if not records and not await self.pipeline_repo.exists(db, entry_id):
            raise NotFound(f"Pipeline entry {entry_id} not found", {"entry_id": str(entry_id)})
        return records

    def allowed_transitions(self, entry: PipelineEntry) -> list[dict[str, Any]]:
        """Legal next stages for the entry, in board order, with their mandatory keys."""
        current = to_stage(entry.stage)
        targets = allowed_next(current, entry.paused_from_stage)
        return [
            {
                "stage": stage.value,
                "label": STAGE_LABELS[stage],
                "required_fields": list(required_fields(current, stage)),
            }
            for stage in PipelineStage
            if stage in targets
        ]

    async def add_to_pipeline(
        self,
        db: AsyncSession,
        job_id: UUID,
        candidate_id: UUID,
        actor_id: Optional[UUID] = None,
        priority: int = 0,
        assigned_to: Optional[UUID] = None,
        notes: Optional[str] = None,
        stage: Union[PipelineStage, str, None] = None
    ) -> PipelineEntry:
        """
        Put a candidate on a job's pipeline at ``sourced``.

        Raises:
            IllegalTransition: A starting stage other than sourced was requested
            NotFound: Unknown job or candidate
            CandidateAnonymised: The candidate has been anonymised
            DuplicateEntry: The candidate is already on this job's pipeline
        """
        if stage is not None:
            try:
                requested = to_stage(stage)
            except ValueError:
                requested = None
            if requested != INITIAL_STAGE:
                raise IllegalTransition(
                    f"New pipeline entries must start at {STAGE_LABELS[INITIAL_STAGE]}",
                    {"to_stage": str(getattr(stage, "value", stage)), "allowed_stages": [INITIAL_STAGE.value]},
                )

        job = await self.job_repo.get(db, job_id)
        if not job:
            raise NotFound(f"Job {job_id} not found", {"job_id": str(job_id)})
        candidate = await self.candidate_repo.get(db, candidate_id)
        if not candidate:
            raise NotFound(f"Candidate {candidate_id} not found", {"candidate_id": str(candidate_id)})
        if candidate.is_anonymised:
            raise CandidateAnonymised(
                "Anonymised candidates cannot be added to a pipeline",
                {"candidate_id": str(candidate_id)},
            )
        if await self.pipeline_repo.get_for_job_and_candidate(db, job_id, candidate_id):
            raise DuplicateEntry(
                "Candidate is already in this job's pipeline",
                {"job_id": str(job_id), "candidate_id": str(candidate_id)},
            )

        now = datetime.now(timezone.utc)
        try:
            entry = await self.pipeline_repo.create(db, {
                "job_id": job_id,
                "candidate_id": candidate_id,
                "stage": INITIAL_STAGE.value,
                "priority": priority,
                "assigned_to": assigned_to,
                "notes": notes,
                "stage_entered_at": now,
            })
            await self.transition_repo.append(db, {
                "pipeline_entry_id": entry.id,
                "from_stage": None,
                "to_stage": INITIAL_STAGE.value,
                "actor_id": actor_id,
                "timestamp_utc": now,
                "supplied_fields": {},
            })
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.info("pipeline_entry_duplicate", job_id=str(job_id), candidate_id=str(candidate_id))
            raise DuplicateEntry(
                "Candidate is already in this job's pipeline",
                {"job_id": str(job_id), "candidate_id": str(candidate_id)},
            ) from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("pipeline_entry_create_failed", job_id=str(job_id), error=str(e))
            raise PersistenceFailure("Failed to add candidate to pipeline") from e

        logger.info("pipeline_entry_created", entry_id=str(entry.id), job_id=str(job_id))
        await self.activity_service.log(
            db, "pipeline_entry_created", "pipeline_entry", entry.id, actor_id,
            {"job_id": job_id, "candidate_id": candidate_id, "stage": INITIAL_STAGE.value},
        )
        return entry

    async def transition(
        self,
        db: AsyncSession,
        entry_id: UUID,
        target_stage: Union[PipelineStage, str],
        fields: Optional[Mapping[str, Any]] = None,
        actor_id: Optional[UUID] = None,
        expected_version: Optional[int] = None
    ) -> TransitionOutcome:
        """
        Move a pipeline entry to ``target_stage``.

        Args:
            db: Active database session
            entry_id: Entry to move
            target_stage: Requested stage
            fields: Key/value bag captured by the transition form
            actor_id: Staff user performing the move
            expected_version: Version the caller last saw; a mismatch is a Conflict

        Returns:
            TransitionOutcome with the refreshed entry, its audit record and,
            for ``placed``, the new Placement

        Raises:
            NotFound, Conflict, IllegalTransition, MissingRequiredFields,
            InvalidFields, PersistenceFailure
        """
        entry = await self.get_entry(db, entry_id)
        loaded_version = entry.version
        if expected_version is not None and expected_version != loaded_version:
            raise Conflict(
                "Pipeline entry was modified by someone else; reload and retry",
                {"entry_id": str(entry_id), "expected_version": expected_version, "current_version": loaded_version},
            )

        bag = await self._with_previous_scorecard(db, entry, target_stage, dict(fields or {}))
        result = validate(entry.stage, target_stage, bag, entry.paused_from_stage)
        if not result.ok:
            logger.info(
                "stage_transition_rejected",
                entry_id=str(entry_id),
                from_stage=entry.stage,
                to_stage=str(getattr(target_stage, "value", target_stage)),
                code=result.code.value,
            )
            raise result.to_error()

        now = datetime.now(timezone.utc)
        from_stage = result.from_stage
        paused_from = from_stage.value if result.to_stage == PipelineStage.ON_HOLD else None
        supplied = jsonable_encoder({**result.fields, **result.derived_fields})
        placement = None

        try:
            written = await self.pipeline_repo.conditional_update(db, entry.id, loaded_version, {
                "stage": result.to_stage.value,
                "paused_from_stage": paused_from,
                "stage_entered_at": now,
                "updated_at": now,
            })
            if not written:
                logger.info("stage_transition_conflict", entry_id=str(entry_id), version=loaded_version)
                raise Conflict(
                    "Pipeline entry was modified by someone else; reload and retry",
                    {"entry_id": str(entry_id), "expected_version": loaded_version},
                )

            if result.to_stage == PipelineStage.PLACED:
                placement = await self.placement_repo.create(
                    db, self._placement_values(entry.id, result, actor_id)
                )

            if result.to_stage in CONTACT_STAGES:
                await self._touch_candidate(db, entry.candidate_id, now)

            record = await self.transition_repo.append(db, {
                "pipeline_entry_id": entry.id,
                "from_stage": from_stage.value,
                "to_stage": result.to_stage.value,
                "actor_id": actor_id,
                "timestamp_utc": now,
                "supplied_fields": supplied,
            })
            await db.commit()
            await db.refresh(entry)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("stage_transition_failed", entry_id=str(entry_id), error=str(e))
            raise PersistenceFailure(
                "Failed to save stage change",
                {"entry_id": str(entry_id), "to_stage": result.to_stage.value},
            ) from e

        logger.info(
            "stage_transition_accepted",
            entry_id=str(entry_id),
            from_stage=from_stage.value,
            to_stage=result.to_stage.value,
        )
        await self.activity_service.log(
            db, "pipeline_stage_changed", "pipeline_entry", entry.id, actor_id,
            {"from_stage": from_stage.value, "to_stage": result.to_stage.value},
        )
        if placement is not None:
            await self.activity_service.log(
                db, "placement_created", "placement", placement.id, actor_id,
                {"pipeline_entry_id": entry.id, "fee_value": placement.fee_value},
            )
        return TransitionOutcome(entry=entry, record=record, placement=placement)

    async def update_metadata(
        self,
        db: AsyncSession,
        entry_id: UUID,
        changes: Mapping[str, Any],
        actor_id: Optional[UUID] = None,
        expected_version: Optional[int] = None
    ) -> PipelineEntry:
        """Edit notes, priority or assignee. Never touches the stage."""
        entry = await self.get_entry(db, entry_id)
        loaded_version = entry.version
        if expected_version is not None and expected_version != loaded_version:
            raise Conflict(
                "Pipeline entry was modified by someone else; reload and retry",
                {"entry_id": str(entry_id), "expected_version": expected_version, "current_version": loaded_version},
            )

        values = {key: changes[key] for key in EDITABLE_METADATA if key in changes}
        if "priority" in values and values["priority"] is None:
            del values["priority"]
        if not values:
            return entry

        try:
            written = await self.pipeline_repo.conditional_update(
                db, entry.id, loaded_version, {**values, "updated_at": datetime.now(timezone.utc)}
            )
            if not written:
                raise Conflict(
                    "Pipeline entry was modified by someone else; reload and retry",
                    {"entry_id": str(entry_id), "expected_version": loaded_version},
                )
            await db.commit()
            await db.refresh(entry)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("pipeline_entry_update_failed", entry_id=str(entry_id), error=str(e))
            raise PersistenceFailure("Failed to update pipeline entry") from e

        await self.activity_service.log(
            db, "pipeline_entry_updated", "pipeline_entry", entry.id, actor_id,
            {"changed": sorted(values)},
        )
        return entry

    async def delete_entry(self, db: AsyncSession, entry_id: UUID, actor_id: Optional[UUID] = None) -> None:
        """Hard delete an entry with its placement and scorecards. The audit trail is kept."""
        entry = await self.get_entry(db, entry_id)
        details = {"job_id": entry.job_id, "candidate_id": entry.candidate_id, "stage": entry.stage}
        try:
            await self.placement_repo.delete_for_entries(db, [entry.id])
            await self.scorecard_repo.delete_for_entries(db, [entry.id])
            await self.pipeline_repo.delete(db, entry.id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("pipeline_entry_delete_failed", entry_id=str(entry_id), error=str(e))
            raise PersistenceFailure("Failed to delete pipeline entry") from e

        logger.info("pipeline_entry_deleted", entry_id=str(entry_id))
        await self.activity_service.log(
            db, "pipeline_entry_deleted", "pipeline_entry", entry_id, actor_id, details
        )

    async def record_scorecard(
        self,
        db: AsyncSession,
        entry_id: UUID,
        data: Mapping[str, Any],
        actor_id: Optional[UUID] = None
    ) -> InterviewScorecard:
        """
        Store interview feedback for an interview round.

        The round defaults to the entry's current stage and must be one of
        the interview stages.
        """
        entry = await self.get_entry(db, entry_id)
        stage_value = data.get("stage") or entry.stage
        try:
            stage = to_stage(stage_value)
        except ValueError:
            stage = None
        if stage not in INTERVIEW_STAGES:
            raise InvalidFields(
                "Scorecards can only be recorded for interview stages",
                {"invalid_fields": {"stage": f"'{stage_value}' is not an interview stage"}},
            )

        values = {key: value for key, value in data.items() if key != "stage"}
        try:
            scorecard = await self.scorecard_repo.create(db, {
                **values,
                "pipeline_entry_id": entry.id,
                "stage": stage.value,
                "created_by": actor_id,
            })
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("scorecard_create_failed", entry_id=str(entry_id), error=str(e))
            raise PersistenceFailure("Failed to save scorecard") from e

        await self.activity_service.log(
            db, "scorecard_recorded", "pipeline_entry", entry.id, actor_id,
            {"stage": stage.value, "scorecard_id": scorecard.id},
        )
        return scorecard

    async def _with_previous_scorecard(
        self,
        db: AsyncSession,
        entry: PipelineEntry,
        target_stage: Union[PipelineStage, str],
        bag: dict[str, Any]
    ) -> dict[str, Any]:
        """Fill ``previous_scorecard`` from the latest scorecard of the current round."""
        try:
            target = to_stage(target_stage)
        except ValueError:
            return bag
        if "previous_scorecard" not in required_fields(entry.stage, target):
            return bag
        if not is_empty(bag.get("previous_scorecard")):
            return bag

        scorecard = await self.scorecard_repo.latest_for_stage(db, entry.id, entry.stage)
        if scorecard is not None:
            bag["previous_scorecard"] = str(scorecard.id)
        return bag

    async def _touch_candidate(self, db: AsyncSession, candidate_id: UUID, when: datetime) -> None:
        candidate = await self.candidate_repo.get(db, candidate_id)
        if candidate is not None and not candidate.is_anonymised:
            await self.candidate_repo.update(db, candidate, {"last_contact_date": when})

    @staticmethod
    def _placement_values(
        entry_id: UUID,
        result: AcceptedTransition,
        actor_id: Optional[UUID]
    ) -> dict[str, Any]:
        terms = result.payload
        return {
            "pipeline_entry_id": entry_id,
            "start_date": terms.start_date,
            "job_type": terms.job_type,
            "salary": terms.salary,
            "fee_percentage": terms.fee_percentage,
            "fee_value": result.derived_fields["fee_value"],
            "fee_currency": terms.fee_currency or settings.default_fee_currency,
            "split_with": terms.split_with,
            "split_percentage": terms.split_percentage,
            "guarantee_period_days": terms.guarantee_period_days,
            "guarantee_expiry": result.derived_fields["guarantee_expiry"],
            "notes": terms.notes,
            "placed_by": actor_id,
        }


pipeline_service = PipelineService()
