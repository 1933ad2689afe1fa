from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from app.core.database import Base


class PlacementStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REBATE = "rebate"
    NO_SHOW = "no_show"


class Placement(Base):
    """
    Commercial record created when a pipeline entry reaches ``placed``.

    fee_value and guarantee_expiry are derived columns: always recomputed from
    salary/fee_percentage and start_date/guarantee_period_days.
    """

    __tablename__ = "placements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    pipeline_entry_id = Column(
        UUID(as_uuid=True), ForeignKey("pipeline_entries.id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True
    )

    # Placement details
    start_date = Column(Date, nullable=False)
    job_type = Column(String(20), nullable=False, default="permanent")

    # Financials
    salary = Column(Numeric(12, 2), nullable=False)
    fee_percentage = Column(Numeric(5, 2), nullable=False)
    fee_value = Column(Integer, nullable=False)
    fee_currency = Column(String(3), nullable=False, default="GBP")
    split_with = Column(String(255))
    split_percentage = Column(Numeric(5, 2), nullable=False, default=100)

    # Guarantee / rebate
    guarantee_period_days = Column(Integer, nullable=False)
    guarantee_expiry = Column(Date, nullable=False)
    rebate_triggered = Column(Boolean, nullable=False, default=False)
    rebate_trigger_date = Column(Date)
    rebate_reason = Column(Text)
    rebate_amount = Column(Integer)

    # Invoicing
    invoice_number = Column(String(100))
    invoice_raised = Column(Boolean, nullable=False, default=False)
    invoice_raised_at = Column(DateTime(timezone=True))
    invoice_paid = Column(Boolean, nullable=False, default=False)
    invoice_paid_at = Column(DateTime(timezone=True))

    status = Column(String(20), nullable=False, default=PlacementStatus.PENDING.value, index=True)
    notes = Column(Text)

    placed_by = Column(UUID(as_uuid=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    pipeline_entry = relationship("PipelineEntry")

    def __repr__(self):
        return f"<Placement(id={self.id}, entry={self.pipeline_entry_id}, fee_value={self.fee_value})>"
