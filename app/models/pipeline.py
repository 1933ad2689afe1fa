from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
import uuid
from app.core.database import Base
from app.utils.stage_graph import INITIAL_STAGE


class PipelineEntry(Base):
    """A candidate's position against one job."""

    __tablename__ = "pipeline_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    job_id = Column(UUID(as_uuid=True), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(UUID(as_uuid=True), ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True)

    stage = Column(String(25), nullable=False, default=INITIAL_STAGE.value, index=True)
    # Values: see app.utils.stage_graph.PipelineStage

    paused_from_stage = Column(String(25), nullable=True)
    # Stage to resume to while stage=on_hold

    priority = Column(Integer, nullable=False, default=0)
    assigned_to = Column(UUID(as_uuid=True), ForeignKey("staff_users.id", ondelete="SET NULL"), nullable=True, index=True)
    notes = Column(Text)

    version = Column(Integer, nullable=False, default=1)
    # Optimistic-concurrency token; every write is conditional on it

    stage_entered_at = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    job = relationship("Job")
    candidate = relationship("Candidate")

    __table_args__ = (UniqueConstraint("job_id", "candidate_id", name="uq_pipeline_entries_job_candidate"),)

    def __repr__(self):
        return f"<PipelineEntry(id={self.id}, job_id={self.job_id}, candidate_id={self.candidate_id}, stage={self.stage})>"


class StageTransitionRecord(Base):
    """
    Append-only audit entry, one per accepted transition.

    pipeline_entry_id carries no foreign key so the trail survives a hard
    delete of the entry.
    """

    __tablename__ = "stage_transition_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    pipeline_entry_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    from_stage = Column(String(25), nullable=True)  # None for the creation record
    to_stage = Column(String(25), nullable=False)
    actor_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    timestamp_utc = Column(DateTime(timezone=True), nullable=False, index=True)
    supplied_fields = Column(JSONB, nullable=False, default=dict)

    def __repr__(self):
        return f"<StageTransitionRecord(entry={self.pipeline_entry_id}, {self.from_stage}->{self.to_stage})>"
