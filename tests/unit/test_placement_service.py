"""
Unit tests for PlacementService.

All database I/O is replaced with AsyncMock objects so tests run without a
real database.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.exceptions import InvalidFields, InvalidPlacementState, NotFound
from app.models.placement import Placement
from app.services.placement_service import PlacementService


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
def _make_placement(**overrides) -> Placement:
    placement = Placement()
    placement.id = uuid.uuid4()
    placement.pipeline_entry_id = uuid.uuid4()
    placement.start_date = date(2025, 3, 1)
    placement.job_type = "permanent"
    placement.salary = Decimal("60000")
    placement.fee_percentage = Decimal("20")
    placement.fee_value = 12000
    placement.fee_currency = "GBP"
    placement.split_with = None
    placement.split_percentage = Decimal("100")
    placement.guarantee_period_days = 90
    placement.guarantee_expiry = date(2025, 5, 30)
    placement.notes = None
    placement.status = "pending"
    placement.invoice_number = None
    placement.invoice_raised = False
    placement.invoice_paid = False
    placement.rebate_triggered = False
    for key, value in overrides.items():
        setattr(placement, key, value)
    return placement


def _apply(db, obj, values):
    for key, value in values.items():
        setattr(obj, key, value)
    return obj


def _make_service(placement: Placement | None = None) -> tuple[PlacementService, MagicMock, MagicMock]:
    repo = MagicMock()
    repo.get = AsyncMock(return_value=placement)
    repo.update = AsyncMock(side_effect=_apply)
    repo.list_all = AsyncMock(return_value=[])
    activity_service = MagicMock()
    activity_service.log = AsyncMock()
    return PlacementService(placement_repo=repo, activity_service=activity_service), repo, activity_service


class TestUpdateTerms:
    @pytest.mark.asyncio
    async def test_recomputes_fee_and_expiry(self):
        placement = _make_placement()
        service, _, _ = _make_service(placement)

        result = await service.update_terms(
            AsyncMock(), placement.id, {"salary": 70000, "guarantee_period_days": 30}
        )

        assert result.fee_value == 14000
        assert result.guarantee_expiry == date(2025, 3, 31)

    @pytest.mark.asyncio
    async def test_ignores_caller_fee_value(self):
        placement = _make_placement()
        service, _, _ = _make_service(placement)

        result = await service.update_terms(AsyncMock(), placement.id, {"fee_value": 1})

        assert result.fee_value == 12000

    @pytest.mark.asyncio
    async def test_out_of_range_percentage_is_invalid(self):
        placement = _make_placement()
        service, repo, _ = _make_service(placement)

        with pytest.raises(InvalidFields) as exc_info:
            await service.update_terms(AsyncMock(), placement.id, {"fee_percentage": 120})

        assert "fee_percentage" in exc_info.value.details["invalid_fields"]
        repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_change(self):
        placement = _make_placement()
        service, _, _ = _make_service(placement)

        result = await service.update_terms(AsyncMock(), placement.id, {"status": "started"})

        assert result.status == "started"

    @pytest.mark.asyncio
    async def test_rebate_status_cannot_be_patched(self):
        placement = _make_placement()
        service, repo, activity = _make_service(placement)

        with pytest.raises(InvalidPlacementState):
            await service.update_terms(AsyncMock(), placement.id, {"status": "rebate"})

        repo.update.assert_not_awaited()
        activity.log.assert_not_awaited()
        assert placement.rebate_triggered is False

    @pytest.mark.asyncio
    async def test_fee_matches_stored_percentage(self):
        placement = _make_placement()
        service, _, _ = _make_service(placement)

        result = await service.update_terms(
            AsyncMock(), placement.id, {"salary": 100000, "fee_percentage": "12.345"}
        )

        assert result.fee_percentage == Decimal("12.35")
        assert result.fee_value == 12350

    @pytest.mark.asyncio
    async def test_unknown_placement(self):
        service, _, _ = _make_service(None)

        with pytest.raises(NotFound):
            await service.update_terms(AsyncMock(), uuid.uuid4(), {"salary": 1})


class TestInvoicing:
    @pytest.mark.asyncio
    async def test_raise_invoice(self):
        placement = _make_placement()
        service, _, activity = _make_service(placement)

        result = await service.raise_invoice(AsyncMock(), placement.id, "INV-001")

        assert result.invoice_raised
        assert result.invoice_number == "INV-001"
        assert result.invoice_raised_at is not None
        assert activity.log.call_args.args[1] == "placement_invoice_raised"

    @pytest.mark.asyncio
    async def test_invoice_cannot_be_raised_twice(self):
        placement = _make_placement(invoice_raised=True, invoice_number="INV-001")
        service, repo, _ = _make_service(placement)

        with pytest.raises(InvalidPlacementState):
            await service.raise_invoice(AsyncMock(), placement.id, "INV-002")

        repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cannot_pay_unraised_invoice(self):
        placement = _make_placement()
        service, _, _ = _make_service(placement)

        with pytest.raises(InvalidPlacementState):
            await service.mark_invoice_paid(AsyncMock(), placement.id)

    @pytest.mark.asyncio
    async def test_mark_paid_is_idempotent(self):
        placement = _make_placement(invoice_raised=True, invoice_paid=True)
        service, repo, activity = _make_service(placement)

        await service.mark_invoice_paid(AsyncMock(), placement.id)

        repo.update.assert_not_awaited()
        activity.log.assert_not_awaited()


class TestRebate:
    @pytest.mark.asyncio
    async def test_trigger_rebate(self):
        placement = _make_placement()
        service, _, _ = _make_service(placement)

        result = await service.trigger_rebate(AsyncMock(), placement.id, " Left in week 3 ", amount=6000)

        assert result.rebate_triggered
        assert result.rebate_reason == "Left in week 3"
        assert result.rebate_amount == 6000
        assert result.status == "rebate"

    @pytest.mark.asyncio
    async def test_rebate_only_once(self):
        placement = _make_placement(rebate_triggered=True)
        service, _, _ = _make_service(placement)

        with pytest.raises(InvalidPlacementState):
            await service.trigger_rebate(AsyncMock(), placement.id, "again")

    @pytest.mark.asyncio
    async def test_rebate_needs_reason(self):
        placement = _make_placement()
        service, _, _ = _make_service(placement)

        with pytest.raises(InvalidFields):
            await service.trigger_rebate(AsyncMock(), placement.id, "   ")


class TestSummary:
    @pytest.mark.asyncio
    async def test_totals_and_date_filter(self):
        service, repo, _ = _make_service()
        repo.list_all.return_value = [
            _make_placement(fee_value=10000, invoice_raised=True, invoice_paid=True, status="started"),
            _make_placement(fee_value=5000, invoice_raised=True),
            _make_placement(fee_value=2000, start_date=date(2024, 1, 1), rebate_triggered=True, status="rebate"),
        ]

        summary = await service.placement_summary(AsyncMock())
        assert summary["total"] == 3
        assert summary["total_fee_value"] == 17000
        assert summary["invoiced_value"] == 15000
        assert summary["paid_value"] == 10000
        assert summary["rebates"] == 1
        assert summary["started"] == 1
        assert summary["pending"] == 1

        filtered = await service.placement_summary(AsyncMock(), start_date_from=date(2025, 1, 1))
        assert filtered["total"] == 2
