from sqlalchemy import Boolean, Column, DateTime, Enum, String
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum
from app.core.database import Base


class StaffRole(str, enum.Enum):
    ADMIN = "admin"
    RECRUITER = "recruiter"
    ACCOUNT_MANAGER = "account_manager"
    MARKETING = "marketing"
    CV_UPLOADER = "cv_uploader"
    VIEWER = "viewer"


class StaffUser(Base):
    """Back-office user. Credentials live with the external auth provider."""

    __tablename__ = "staff_users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255))

    role = Column(Enum(StaffRole), nullable=False, default=StaffRole.VIEWER, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<StaffUser(id={self.id}, email={self.email}, role={self.role})>"
