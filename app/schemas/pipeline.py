from pydantic import BaseModel, Field
from typing import Annotated, Any, Dict, List, Literal, Optional
from datetime import datetime
import uuid

from app.schemas.placement import Placement
from app.utils.pagination import PaginationMeta
from app.utils.stage_graph import PipelineStage

Score = Optional[Annotated[int, Field(ge=1, le=5)]]
Recommendation = Literal['strong_hire', 'hire', 'maybe', 'no_hire', 'strong_no_hire']


class PipelineEntryCreate(BaseModel):
    job_id: uuid.UUID
    candidate_id: uuid.UUID
    stage: Optional[str] = None  # only "sourced" is accepted
    priority: int = Field(default=0, ge=0)
    assigned_to: Optional[uuid.UUID] = None
    notes: Optional[str] = None


class PipelineEntryUpdate(BaseModel):
    """Metadata edit; the stage only changes through a transition"""
    notes: Optional[str] = None
    priority: Optional[int] = Field(default=None, ge=0)
    assigned_to: Optional[uuid.UUID] = None
    expected_version: Optional[int] = None


class TransitionRequest(BaseModel):
    """
    Stage-change request from the transition form.

    ``fields`` is the loose key/value bag; its required keys depend on the
    target stage and are checked by the transition validator.
    """
    to_stage: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    expected_version: Optional[int] = None


class PipelineEntry(BaseModel):
    id: uuid.UUID
    job_id: uuid.UUID
    candidate_id: uuid.UUID
    stage: PipelineStage
    paused_from_stage: Optional[PipelineStage] = None
    priority: int
    assigned_to: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    version: int
    stage_entered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PipelineEntryList(BaseModel):
    items: List[PipelineEntry]
    pagination: PaginationMeta


class StageTransitionRecord(BaseModel):
    id: uuid.UUID
    pipeline_entry_id: uuid.UUID
    from_stage: Optional[PipelineStage] = None
    to_stage: PipelineStage
    actor_id: Optional[uuid.UUID] = None
    timestamp_utc: datetime
    supplied_fields: Dict[str, Any]

    class Config:
        from_attributes = True


class AllowedTransition(BaseModel):
    stage: PipelineStage
    label: str
    required_fields: List[str]


class TransitionResponse(BaseModel):
    entry: PipelineEntry
    record: StageTransitionRecord
    placement: Optional[Placement] = None


class ScorecardCreate(BaseModel):
    stage: Optional[str] = None  # defaults to the entry's current stage
    interviewer_name: Optional[str] = None
    interview_type: Literal['phone', 'video', 'in_person', 'assessment'] = 'video'
    interview_date: Optional[datetime] = None
    technical_skills: Score = None
    communication: Score = None
    cultural_fit: Score = None
    motivation: Score = None
    experience_relevance: Score = None
    overall_impression: Score = None
    strengths: Optional[str] = None
    concerns: Optional[str] = None
    recommendation: Optional[Recommendation] = None
    is_client_feedback: bool = False


class Scorecard(BaseModel):
    id: uuid.UUID
    pipeline_entry_id: uuid.UUID
    stage: str
    interviewer_name: Optional[str] = None
    interview_type: str
    interview_date: Optional[datetime] = None
    technical_skills: Optional[int] = None
    communication: Optional[int] = None
    cultural_fit: Optional[int] = None
    motivation: Optional[int] = None
    experience_relevance: Optional[int] = None
    overall_impression: Optional[int] = None
    strengths: Optional[str] = None
    concerns: Optional[str] = None
    recommendation: Optional[str] = None
    is_client_feedback: bool
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
