"""
Placement service: commercial terms, invoicing and rebates for placed
candidates.

fee_value and guarantee_expiry are derived columns. Every terms edit
recomputes both from the merged terms, so a caller can never store a fee that
disagrees with salary x fee_percentage.
"""

from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional
from uuid import UUID
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.core.exceptions import InvalidFields, InvalidPlacementState, NotFound, PersistenceFailure
from app.models.placement import Placement, PlacementStatus
from app.repositories.placement_repository import PlacementRepository
from app.schemas.stage_fields import PlacementFields
from app.services.activity_log_service import ActivityLogService
from app.services.transition_validator import compute_fee_value, compute_guarantee_expiry

logger = logging.getLogger(__name__)

TERM_FIELDS = (
    "start_date",
    "salary",
    "fee_percentage",
    "guarantee_period_days",
    "job_type",
    "fee_currency",
    "split_with",
    "split_percentage",
    "notes",
)


class PlacementService:

    def __init__(
        self,
        placement_repo: Optional[PlacementRepository] = None,
        activity_service: Optional[ActivityLogService] = None
    ):
        self.placement_repo = placement_repo or PlacementRepository()
        self.activity_service = activity_service or ActivityLogService()

    async def get_placement(self, db: AsyncSession, placement_id: UUID) -> Placement:
        placement = await self.placement_repo.get(db, placement_id)
        if not placement:
            raise NotFound(f"Placement {placement_id} not found", {"placement_id": str(placement_id)})
        return placement

    async def update_terms(
        self,
        db: AsyncSession,
        placement_id: UUID,
        changes: Mapping[str, Any],
        actor_id: Optional[UUID] = None
    ) -> Placement:
        """
        Edit placement terms and status.

        Caller-supplied fee_value or guarantee_expiry are ignored; both are
        recomputed from the merged terms.

        Raises:
            NotFound: Unknown placement
            InvalidFields: The merged terms are out of range
            InvalidPlacementState: ``status`` was set to ``rebate``; rebates
                go through ``trigger_rebate`` so the reason is recorded
        """
        placement = await self.get_placement(db, placement_id)
        if changes.get("status") == PlacementStatus.REBATE.value:
            raise InvalidPlacementState(
                "Rebates must be triggered through the rebate action",
                {"placement_id": str(placement_id), "status": PlacementStatus.REBATE.value},
            )

        merged = {key: getattr(placement, key) for key in TERM_FIELDS}
        merged.update({key: changes[key] for key in TERM_FIELDS if key in changes})
        try:
            terms = PlacementFields.model_validate(merged)
        except ValidationError as exc:
            invalid = {
                ".".join(str(part) for part in error["loc"]): error["msg"]
                for error in exc.errors()
            }
            raise InvalidFields("Invalid placement terms", {"invalid_fields": invalid}) from exc

        values: dict[str, Any] = {key: getattr(terms, key) for key in TERM_FIELDS}
        values["fee_value"] = compute_fee_value(terms.salary, terms.fee_percentage)
        values["guarantee_expiry"] = compute_guarantee_expiry(terms.start_date, terms.guarantee_period_days)
        if values["fee_currency"] is None:
            values["fee_currency"] = placement.fee_currency
        if changes.get("status"):
            values["status"] = PlacementStatus(changes["status"]).value

        placement = await self._save(db, placement, values)
        await self.activity_service.log(
            db, "placement_updated", "placement", placement.id, actor_id,
            {"changed": sorted(key for key in changes if key in values)},
        )
        return placement

    async def raise_invoice(
        self,
        db: AsyncSession,
        placement_id: UUID,
        invoice_number: Optional[str] = None,
        actor_id: Optional[UUID] = None
    ) -> Placement:
        placement = await self.get_placement(db, placement_id)
        if placement.invoice_raised:
            raise InvalidPlacementState(
                "Invoice has already been raised",
                {"placement_id": str(placement_id), "invoice_number": placement.invoice_number},
            )

        placement = await self._save(db, placement, {
            "invoice_raised": True,
            "invoice_raised_at": datetime.now(timezone.utc),
            "invoice_number": invoice_number,
        })
        await self.activity_service.log(
            db, "placement_invoice_raised", "placement", placement.id, actor_id,
            {"invoice_number": invoice_number, "fee_value": placement.fee_value},
        )
        return placement

    async def mark_invoice_paid(
        self,
        db: AsyncSession,
        placement_id: UUID,
        actor_id: Optional[UUID] = None
    ) -> Placement:
        """
        Raises:
            InvalidPlacementState: No invoice has been raised yet
        """
        placement = await self.get_placement(db, placement_id)
        if not placement.invoice_raised:
            raise InvalidPlacementState(
                "Cannot mark an invoice paid before it has been raised",
                {"placement_id": str(placement_id)},
            )
        if placement.invoice_paid:
            return placement

        placement = await self._save(db, placement, {
            "invoice_paid": True,
            "invoice_paid_at": datetime.now(timezone.utc),
        })
        await self.activity_service.log(
            db, "placement_invoice_paid", "placement", placement.id, actor_id,
            {"fee_value": placement.fee_value},
        )
        return placement

    async def trigger_rebate(
        self,
        db: AsyncSession,
        placement_id: UUID,
        reason: str,
        amount: Optional[int] = None,
        actor_id: Optional[UUID] = None
    ) -> Placement:
        placement = await self.get_placement(db, placement_id)
        if placement.rebate_triggered:
            raise InvalidPlacementState(
                "Rebate has already been triggered",
                {"placement_id": str(placement_id)},
            )
        if not reason or not reason.strip():
            raise InvalidFields("A rebate reason is required", {"invalid_fields": {"reason": "cannot be empty"}})

        placement = await self._save(db, placement, {
            "rebate_triggered": True,
            "rebate_trigger_date": datetime.now(timezone.utc).date(),
            "rebate_reason": reason.strip(),
            "rebate_amount": amount,
            "status": PlacementStatus.REBATE.value,
        })
        await self.activity_service.log(
            db, "placement_rebate_triggered", "placement", placement.id, actor_id,
            {"reason": placement.rebate_reason, "amount": amount},
        )
        return placement

    async def placement_summary(
        self,
        db: AsyncSession,
        start_date_from: Optional[date] = None,
        start_date_to: Optional[date] = None
    ) -> dict[str, int]:
        """Counts by status plus total, invoiced and paid fee value."""
        placements = await self.placement_repo.list_all(db)
        if start_date_from:
            placements = [p for p in placements if p.start_date >= start_date_from]
        if start_date_to:
            placements = [p for p in placements if p.start_date <= start_date_to]

        return {
            "total": len(placements),
            "pending": sum(1 for p in placements if p.status == PlacementStatus.PENDING.value),
            "confirmed": sum(1 for p in placements if p.status == PlacementStatus.CONFIRMED.value),
            "started": sum(1 for p in placements if p.status == PlacementStatus.STARTED.value),
            "completed": sum(1 for p in placements if p.status == PlacementStatus.COMPLETED.value),
            "rebates": sum(1 for p in placements if p.rebate_triggered),
            "total_fee_value": sum(p.fee_value or 0 for p in placements),
            "invoiced_value": sum(p.fee_value or 0 for p in placements if p.invoice_raised),
            "paid_value": sum(p.fee_value or 0 for p in placements if p.invoice_paid),
        }

    async def _save(self, db: AsyncSession, placement: Placement, values: dict[str, Any]) -> Placement:
        try:
            placement = await self.placement_repo.update(db, placement, values)
            await db.commit()
            return placement
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error updating placement {placement.id}: {e}")
            raise PersistenceFailure("Failed to update placement", {"placement_id": str(placement.id)}) from e


placement_service = PlacementService()
