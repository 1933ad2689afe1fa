from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
import uuid

from app.services.duplicate_matcher import MatchReason
from app.services.gdpr_clock import GDPRState


class Candidate(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
    job_title: Optional[str] = None
    location: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    anonymised_at: Optional[datetime] = None
    gdpr_notes: Optional[str] = None
    potential_duplicate_of: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CandidateIdentityUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ContactTouch(BaseModel):
    contacted_at: Optional[datetime] = None  # defaults to now


class GDPRStatusResponse(BaseModel):
    candidate_id: uuid.UUID
    status: GDPRState
    label: str
    days_since_contact: Optional[int] = None
    days_until_expiry: Optional[int] = None
    last_contact_date: Optional[datetime] = None
    anonymised_at: Optional[datetime] = None


class GDPRSummary(BaseModel):
    active: int
    stale: int
    at_risk: int
    expired: int
    total: int


class BulkCandidateRequest(BaseModel):
    candidate_ids: List[uuid.UUID] = Field(min_length=1, max_length=500)


class BulkResultResponse(BaseModel):
    success: int
    failed: int
    failed_ids: List[uuid.UUID]

    class Config:
        from_attributes = True


class IdentityRecord(BaseModel):
    """Bare identity fields for ad-hoc duplicate scoring"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class DuplicateScoreRequest(BaseModel):
    a: IdentityRecord
    b: IdentityRecord


class MatchResultResponse(BaseModel):
    is_match: bool
    reasons: List[MatchReason]
    is_strong: bool
    requires_review: bool


class DuplicateCandidate(BaseModel):
    candidate: Candidate
    match: MatchResultResponse


class DuplicateFlag(BaseModel):
    duplicate_of: Optional[uuid.UUID] = None  # None clears the flag
