from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from app.core.database import get_db
from app.core.permissions import Permissions
from app.api.deps import require_permission
from app.models.user import StaffUser
from app.schemas.pipeline import (
    AllowedTransition,
    PipelineEntry,
    PipelineEntryCreate,
    PipelineEntryList,
    PipelineEntryUpdate,
    Scorecard,
    ScorecardCreate,
    StageTransitionRecord,
    TransitionRequest,
    TransitionResponse,
)
from app.services.pipeline_service import pipeline_service
from app.utils.pagination import PaginationMeta, PaginationParams
from app.utils.stage_graph import PipelineStage
import uuid

router = APIRouter()

can_view = require_permission(Permissions.APPLICATIONS_VIEW)
can_manage = require_permission(Permissions.APPLICATIONS_MANAGE)
can_delete = require_permission(Permissions.PIPELINE_DELETE)


@router.post("", response_model=PipelineEntry, status_code=status.HTTP_201_CREATED)
async def add_to_pipeline(
    payload: PipelineEntryCreate,
    current_user: StaffUser = Depends(can_manage),
    db: AsyncSession = Depends(get_db)
):
    """Add a candidate to a job's pipeline at the Sourced stage"""
    return await pipeline_service.add_to_pipeline(
        db,
        job_id=payload.job_id,
        candidate_id=payload.candidate_id,
        actor_id=current_user.id,
        priority=payload.priority,
        assigned_to=payload.assigned_to,
        notes=payload.notes,
        stage=payload.stage,
    )


@router.get("", response_model=PipelineEntryList)
async def list_pipeline(
    job_id: Optional[uuid.UUID] = Query(None),
    candidate_id: Optional[uuid.UUID] = Query(None),
    stage: Optional[PipelineStage] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    """List pipeline entries for the board, optionally filtered by job, candidate and stage"""
    params = PaginationParams(page=page, limit=limit)
    entries, total = await pipeline_service.list_entries(
        db, job_id=job_id, stage=stage, candidate_id=candidate_id,
        skip=params.get_offset(), limit=params.limit
    )
    return {"items": entries, "pagination": PaginationMeta.from_params(params, total)}


@router.get("/{entry_id}", response_model=PipelineEntry)
async def get_pipeline_entry(
    entry_id: uuid.UUID,
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    return await pipeline_service.get_entry(db, entry_id)


@router.patch("/{entry_id}", response_model=PipelineEntry)
async def update_pipeline_entry(
    entry_id: uuid.UUID,
    payload: PipelineEntryUpdate,
    current_user: StaffUser = Depends(can_manage),
    db: AsyncSession = Depends(get_db)
):
    """Edit notes, priority or assignee. Use the transitions endpoint to change stage."""
    changes = payload.model_dump(exclude_unset=True, exclude={"expected_version"})
    return await pipeline_service.update_metadata(
        db, entry_id, changes, actor_id=current_user.id, expected_version=payload.expected_version
    )


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pipeline_entry(
    entry_id: uuid.UUID,
    current_user: StaffUser = Depends(can_delete),
    db: AsyncSession = Depends(get_db)
):
    """Hard delete a pipeline entry (admin only). Its transition history is kept."""
    await pipeline_service.delete_entry(db, entry_id, actor_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{entry_id}/transitions", response_model=TransitionResponse)
async def transition_pipeline_entry(
    entry_id: uuid.UUID,
    payload: TransitionRequest,
    current_user: StaffUser = Depends(can_manage),
    db: AsyncSession = Depends(get_db)
):
    """
    Move an entry to another stage.

    Rejected moves return 409 ILLEGAL_TRANSITION, 422 MISSING_REQUIRED_FIELDS
    (with details.missing_fields) or 422 INVALID_FIELDS. A stale
    expected_version returns 409 CONFLICT.
    """
    outcome = await pipeline_service.transition(
        db,
        entry_id,
        payload.to_stage,
        payload.fields,
        actor_id=current_user.id,
        expected_version=payload.expected_version,
    )
    return {"entry": outcome.entry, "record": outcome.record, "placement": outcome.placement}


@router.get("/{entry_id}/transitions", response_model=List[StageTransitionRecord])
async def get_transition_history(
    entry_id: uuid.UUID,
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    return await pipeline_service.get_history(db, entry_id)


@router.get("/{entry_id}/allowed-transitions", response_model=List[AllowedTransition])
async def get_allowed_transitions(
    entry_id: uuid.UUID,
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    """Stages the entry may move to next, with the fields each one requires"""
    entry = await pipeline_service.get_entry(db, entry_id)
    return pipeline_service.allowed_transitions(entry)


@router.post("/{entry_id}/scorecards", response_model=Scorecard, status_code=status.HTTP_201_CREATED)
async def record_scorecard(
    entry_id: uuid.UUID,
    payload: ScorecardCreate,
    current_user: StaffUser = Depends(can_manage),
    db: AsyncSession = Depends(get_db)
):
    return await pipeline_service.record_scorecard(
        db, entry_id, payload.model_dump(exclude_unset=True), actor_id=current_user.id
    )
