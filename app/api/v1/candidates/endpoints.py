from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from app.core.database import get_db
from app.core.permissions import Permissions
from app.api.deps import require_permission
from app.models.user import StaffUser
from app.schemas.candidate import (
    BulkCandidateRequest,
    BulkResultResponse,
    Candidate,
    CandidateIdentityUpdate,
    ContactTouch,
    DuplicateCandidate,
    DuplicateFlag,
    DuplicateScoreRequest,
    GDPRStatusResponse,
    GDPRSummary,
    MatchResultResponse,
)
from app.services import duplicate_matcher
from app.services.candidate_service import candidate_service
from app.services.duplicate_matcher import MatchResult
import uuid

router = APIRouter()

can_view = require_permission(Permissions.CV_VIEW)
can_update = require_permission(Permissions.CV_UPDATE)
can_delete = require_permission(Permissions.CV_DELETE)


def _match_response(result: MatchResult) -> dict:
    return {
        "is_match": result.is_match,
        "reasons": sorted(reason.value for reason in result.reasons),
        "is_strong": result.is_strong,
        "requires_review": result.requires_review,
    }


@router.get("/gdpr/summary", response_model=GDPRSummary)
async def get_gdpr_summary(
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    """Counts of non-anonymised candidates per GDPR retention status"""
    return await candidate_service.gdpr_summary(db)


@router.post("/gdpr/bulk-anonymise", response_model=BulkResultResponse)
async def bulk_anonymise_candidates(
    payload: BulkCandidateRequest,
    current_user: StaffUser = Depends(can_delete),
    db: AsyncSession = Depends(get_db)
):
    """Anonymise each candidate independently; failures are counted, not fatal"""
    return await candidate_service.bulk_anonymise(db, payload.candidate_ids, actor_id=current_user.id)


@router.post("/gdpr/bulk-delete", response_model=BulkResultResponse)
async def bulk_delete_candidates(
    payload: BulkCandidateRequest,
    current_user: StaffUser = Depends(can_delete),
    db: AsyncSession = Depends(get_db)
):
    return await candidate_service.bulk_delete(db, payload.candidate_ids, actor_id=current_user.id)


@router.post("/duplicates/score", response_model=MatchResultResponse)
async def score_duplicate_pair(
    payload: DuplicateScoreRequest,
    current_user: StaffUser = Depends(can_view)
):
    """Compare two identity records without touching the database"""
    return _match_response(duplicate_matcher.score(payload.a.model_dump(), payload.b.model_dump()))


@router.get("/{candidate_id}/gdpr", response_model=GDPRStatusResponse)
async def get_candidate_gdpr_status(
    candidate_id: uuid.UUID,
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    candidate = await candidate_service.get_candidate(db, candidate_id)
    gdpr = candidate_service.gdpr_status(candidate)
    return GDPRStatusResponse(
        candidate_id=candidate.id,
        status=gdpr.status,
        label=gdpr.label,
        days_since_contact=gdpr.days_since_contact,
        days_until_expiry=gdpr.days_until_expiry,
        last_contact_date=candidate.last_contact_date,
        anonymised_at=candidate.anonymised_at,
    )


@router.patch("/{candidate_id}", response_model=Candidate)
async def update_candidate_identity(
    candidate_id: uuid.UUID,
    payload: CandidateIdentityUpdate,
    current_user: StaffUser = Depends(can_update),
    db: AsyncSession = Depends(get_db)
):
    """Edit name, email or phone. Refused once the candidate is anonymised."""
    return await candidate_service.update_identity(
        db, candidate_id, payload.model_dump(exclude_unset=True), actor_id=current_user.id
    )


@router.delete("/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_candidate(
    candidate_id: uuid.UUID,
    current_user: StaffUser = Depends(can_delete),
    db: AsyncSession = Depends(get_db)
):
    """Delete a candidate and every pipeline entry they are on"""
    await candidate_service.delete_candidate(db, candidate_id, actor_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{candidate_id}/anonymise", response_model=Candidate)
async def anonymise_candidate(
    candidate_id: uuid.UUID,
    current_user: StaffUser = Depends(can_update),
    db: AsyncSession = Depends(get_db)
):
    return await candidate_service.anonymise(db, candidate_id, actor_id=current_user.id)


@router.post("/{candidate_id}/contact", response_model=Candidate)
async def record_candidate_contact(
    candidate_id: uuid.UUID,
    payload: ContactTouch,
    current_user: StaffUser = Depends(can_update),
    db: AsyncSession = Depends(get_db)
):
    return await candidate_service.touch_contact(db, candidate_id, payload.contacted_at)


@router.get("/{candidate_id}/duplicates", response_model=List[DuplicateCandidate])
async def get_candidate_duplicates(
    candidate_id: uuid.UUID,
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    """Likely duplicates of a candidate, strong matches first"""
    matches = await candidate_service.find_duplicates(db, candidate_id)
    return [{"candidate": other, "match": _match_response(result)} for other, result in matches]


@router.post("/{candidate_id}/duplicate-of", response_model=Candidate)
async def flag_candidate_duplicate(
    candidate_id: uuid.UUID,
    payload: DuplicateFlag,
    current_user: StaffUser = Depends(can_update),
    db: AsyncSession = Depends(get_db)
):
    return await candidate_service.flag_duplicate(
        db, candidate_id, payload.duplicate_of, actor_id=current_user.id
    )
