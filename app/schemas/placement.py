from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import date, datetime
from decimal import Decimal
import uuid

PlacementStatusValue = Literal['pending', 'confirmed', 'started', 'completed', 'cancelled', 'rebate', 'no_show']


class Placement(BaseModel):
    id: uuid.UUID
    pipeline_entry_id: uuid.UUID
    start_date: date
    job_type: str
    salary: Decimal
    fee_percentage: Decimal
    fee_value: int
    fee_currency: str
    split_with: Optional[str] = None
    split_percentage: Decimal
    guarantee_period_days: int
    guarantee_expiry: date
    rebate_triggered: bool
    rebate_trigger_date: Optional[date] = None
    rebate_reason: Optional[str] = None
    rebate_amount: Optional[int] = None
    invoice_number: Optional[str] = None
    invoice_raised: bool
    invoice_raised_at: Optional[datetime] = None
    invoice_paid: bool
    invoice_paid_at: Optional[datetime] = None
    status: str
    notes: Optional[str] = None
    placed_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlacementUpdate(BaseModel):
    """Terms edit. fee_value and guarantee_expiry are always recomputed."""
    start_date: Optional[date] = None
    salary: Optional[Decimal] = None
    fee_percentage: Optional[Decimal] = None
    guarantee_period_days: Optional[int] = None
    job_type: Optional[Literal['permanent', 'contract', 'temp_to_perm', 'interim']] = None
    fee_currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    split_with: Optional[str] = None
    split_percentage: Optional[Decimal] = None
    notes: Optional[str] = None
    status: Optional[PlacementStatusValue] = None


class InvoiceRaise(BaseModel):
    invoice_number: Optional[str] = None


class RebateRequest(BaseModel):
    reason: str
    amount: Optional[int] = Field(default=None, ge=0)


class PlacementSummary(BaseModel):
    total: int
    pending: int
    confirmed: int
    started: int
    completed: int
    rebates: int
    total_fee_value: int
    invoiced_value: int
    paid_value: int
