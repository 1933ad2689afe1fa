from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date
from app.core.database import get_db
from app.core.permissions import Permissions
from app.api.deps import require_permission
from app.models.user import StaffUser
from app.schemas.placement import (
    InvoiceRaise,
    Placement,
    PlacementSummary,
    PlacementUpdate,
    RebateRequest,
)
from app.services.placement_service import placement_service
import uuid

router = APIRouter()

can_view = require_permission(Permissions.APPLICATIONS_VIEW)
can_manage = require_permission(Permissions.APPLICATIONS_MANAGE)


@router.get("/summary", response_model=PlacementSummary)
async def get_placement_summary(
    start_date_from: Optional[date] = Query(None),
    start_date_to: Optional[date] = Query(None),
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    """Placement counts and fee totals, optionally for a start-date window"""
    return await placement_service.placement_summary(db, start_date_from, start_date_to)


@router.get("/{placement_id}", response_model=Placement)
async def get_placement(
    placement_id: uuid.UUID,
    current_user: StaffUser = Depends(can_view),
    db: AsyncSession = Depends(get_db)
):
    return await placement_service.get_placement(db, placement_id)


@router.patch("/{placement_id}", response_model=Placement)
async def update_placement(
    placement_id: uuid.UUID,
    payload: PlacementUpdate,
    current_user: StaffUser = Depends(can_manage),
    db: AsyncSession = Depends(get_db)
):
    """Edit terms or status; fee value and guarantee expiry are recalculated"""
    return await placement_service.update_terms(
        db, placement_id, payload.model_dump(exclude_unset=True), actor_id=current_user.id
    )


@router.post("/{placement_id}/invoice", response_model=Placement)
async def raise_placement_invoice(
    placement_id: uuid.UUID,
    payload: InvoiceRaise,
    current_user: StaffUser = Depends(can_manage),
    db: AsyncSession = Depends(get_db)
):
    return await placement_service.raise_invoice(
        db, placement_id, payload.invoice_number, actor_id=current_user.id
    )


@router.post("/{placement_id}/invoice/paid", response_model=Placement)
async def mark_placement_invoice_paid(
    placement_id: uuid.UUID,
    current_user: StaffUser = Depends(can_manage),
    db: AsyncSession = Depends(get_db)
):
    return await placement_service.mark_invoice_paid(db, placement_id, actor_id=current_user.id)


@router.post("/{placement_id}/rebate", response_model=Placement)
async def trigger_placement_rebate(
    placement_id: uuid.UUID,
    payload: RebateRequest,
    current_user: StaffUser = Depends(can_manage),
    db: AsyncSession = Depends(get_db)
):
    return await placement_service.trigger_rebate(
        db, placement_id, payload.reason, payload.amount, actor_id=current_user.id
    )
