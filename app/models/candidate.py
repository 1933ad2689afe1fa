from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import validates
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
import uuid
from app.core.database import Base
from app.utils.identity import normalize_email, normalize_phone


class Candidate(Base):
    """
    A person being tracked, independent of any single job.

    Identity fields are rewritten exactly once, by anonymisation; after
    ``anonymised_at`` is set they never go back to real values.
    """

    __tablename__ = "candidates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # Identity
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50))

    # Comparison keys for duplicate lookups, kept in step with email and phone
    email_normalized = Column(String(255), index=True)
    phone_digits = Column(String(50), index=True)

    # GDPR
    last_contact_date = Column(DateTime(timezone=True), index=True)
    consent_given_at = Column(DateTime(timezone=True))
    consent_expires_at = Column(DateTime(timezone=True))
    anonymised_at = Column(DateTime(timezone=True), index=True)
    gdpr_notes = Column(Text)

    # Profile sub-records (read-only to the pipeline core)
    job_title = Column(String(255))
    location = Column(String(255))
    current_salary = Column(Integer)
    salary_expectation = Column(Integer)
    employment_history = Column(JSON, default=list)
    qualifications = Column(JSON, default=list)
    skills = Column(JSON)
    experience_summary = Column(Text)
    admin_notes = Column(Text)

    # Written by the external AI scoring function; never by this service
    confidence_score = Column(Integer)
    suggested_status = Column(String(50))
    ai_reasoning = Column(Text)
    ai_profile = Column(JSON)

    potential_duplicate_of = Column(UUID(as_uuid=True), ForeignKey("candidates.id", ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @validates("email")
    def _sync_email_normalized(self, key, value):
        self.email_normalized = normalize_email(value) or None
        return value

    @validates("phone")
    def _sync_phone_digits(self, key, value):
        self.phone_digits = normalize_phone(value) or None
        return value

    @property
    def is_anonymised(self) -> bool:
        return self.anonymised_at is not None

    def __repr__(self):
        return f"<Candidate(id={self.id}, anonymised={self.is_anonymised})>"
