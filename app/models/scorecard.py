from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
import uuid
from app.core.database import Base


class InterviewScorecard(Base):
    """Structured feedback for one interview round of a pipeline entry."""

    __tablename__ = "interview_scorecards"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    pipeline_entry_id = Column(
        UUID(as_uuid=True), ForeignKey("pipeline_entries.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    stage = Column(String(25), nullable=False)  # interview_1, interview_2 or final

    interviewer_name = Column(String(255))
    interview_type = Column(String(20), nullable=False, default="video")
    interview_date = Column(DateTime(timezone=True))

    # Scores (1-5)
    technical_skills = Column(Integer)
    communication = Column(Integer)
    cultural_fit = Column(Integer)
    motivation = Column(Integer)
    experience_relevance = Column(Integer)
    overall_impression = Column(Integer)

    strengths = Column(Text)
    concerns = Column(Text)
    recommendation = Column(String(20))
    is_client_feedback = Column(Boolean, nullable=False, default=False)

    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<InterviewScorecard(entry={self.pipeline_entry_id}, stage={self.stage})>"
