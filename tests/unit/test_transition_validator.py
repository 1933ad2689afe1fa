"""
Unit tests for the stage-transition validator.

The validator is pure, so these tests call it directly with plain dicts.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import IllegalTransition, InvalidFields, MissingRequiredFields
from app.schemas.stage_fields import OnHoldFields, PlacementFields
from app.services.transition_validator import (
    RejectionCode,
    compute_fee_value,
    compute_guarantee_expiry,
    is_empty,
    validate,
)
from app.utils.stage_graph import PipelineStage


PLACEMENT_TERMS = {
    "start_date": "2025-03-01",
    "salary": 60000,
    "fee_percentage": 20,
    "guarantee_period_days": 90,
}


class TestIllegalTransitions:
    def test_skipping_stages_is_rejected_before_fields_are_checked(self):
        result = validate("submitted", "placed", {})
        assert not result.ok
        assert result.code == RejectionCode.ILLEGAL_TRANSITION
        assert result.missing_fields == ()

    def test_backward_move_is_rejected(self):
        result = validate("offer", "submitted", {"submission_notes": "x", "client_contact_confirmed": True})
        assert result.code == RejectionCode.ILLEGAL_TRANSITION

    def test_unknown_target_is_illegal(self):
        result = validate("offer", "hired", {})
        assert result.code == RejectionCode.ILLEGAL_TRANSITION
        assert result.details()["to_stage"] == "hired"

    def test_leaving_terminal_stage_is_illegal(self):
        result = validate("rejected", "sourced", {})
        assert result.code == RejectionCode.ILLEGAL_TRANSITION
        assert result.details()["allowed_stages"] == []

    def test_details_list_allowed_stages(self):
        result = validate("submitted", "placed", {})
        assert result.details()["allowed_stages"] == ["interview_1", "on_hold", "rejected"]

    def test_to_error_is_illegal_transition(self):
        error = validate("submitted", "placed", {}).to_error()
        assert isinstance(error, IllegalTransition)
        assert error.code == "ILLEGAL_TRANSITION"


class TestMissingFields:
    def test_second_interview_without_scorecard(self):
        result = validate("interview_1", "interview_2", {"interview_date_time": "2025-01-10T10:00:00Z"})
        assert result.code == RejectionCode.MISSING_REQUIRED_FIELDS
        assert result.missing_fields == ("previous_scorecard",)

    def test_missing_fields_reported_in_declared_order(self):
        result = validate("accepted", "placed", {"salary": 50000})
        assert result.missing_fields == ("start_date", "fee_percentage", "guarantee_period_days")

    @pytest.mark.parametrize("blank", [None, "", "   ", [], {}])
    def test_blank_values_count_as_missing(self, blank):
        result = validate("sourced", "contacted", {"contact_note": blank})
        assert result.code == RejectionCode.MISSING_REQUIRED_FIELDS

    def test_false_and_zero_are_values(self):
        assert not is_empty(False)
        assert not is_empty(0)

    def test_to_error_carries_missing_fields(self):
        error = validate("sourced", "contacted", {}).to_error()
        assert isinstance(error, MissingRequiredFields)
        assert error.missing_fields == ["contact_note"]


class TestInvalidFields:
    def test_unparseable_date(self):
        fields = {**PLACEMENT_TERMS, "start_date": "next tuesday"}
        result = validate("accepted", "placed", fields)
        assert result.code == RejectionCode.INVALID_FIELDS
        assert "start_date" in result.invalid_fields

    def test_fee_percentage_out_of_range(self):
        result = validate("accepted", "placed", {**PLACEMENT_TERMS, "fee_percentage": 150})
        assert result.code == RejectionCode.INVALID_FIELDS
        assert isinstance(result.to_error(), InvalidFields)

    def test_unconfirmed_client_contact(self):
        result = validate(
            "qualified", "submitted",
            {"submission_notes": "Strong fit", "client_contact_confirmed": False},
        )
        assert result.code == RejectionCode.INVALID_FIELDS

    def test_unknown_rejection_category(self):
        result = validate(
            "offer", "rejected",
            {"rejection_reason": "Went elsewhere", "rejection_category": "bored"},
        )
        assert result.code == RejectionCode.INVALID_FIELDS


class TestAcceptedTransitions:
    def test_contacted(self):
        result = validate("sourced", "contacted", {"contact_note": "Called, interested"})
        assert result.ok
        assert result.to_stage == PipelineStage.CONTACTED
        assert result.payload.contact_note == "Called, interested"

    def test_extra_keys_are_kept_in_the_bag(self):
        result = validate("sourced", "contacted", {"contact_note": "ok", "channel": "phone"})
        assert result.fields["channel"] == "phone"

    def test_on_hold_payload(self):
        result = validate("offer", "on_hold", {"hold_reason": "Client restructure"})
        assert result.ok
        assert isinstance(result.payload, OnHoldFields)

    def test_resumption_needs_no_fields(self):
        result = validate("on_hold", "offer", {}, paused_from="offer")
        assert result.ok
        assert result.is_resumption
        assert result.payload is None

    def test_resumption_elsewhere_is_illegal(self):
        result = validate("on_hold", "accepted", {}, paused_from="offer")
        assert result.code == RejectionCode.ILLEGAL_TRANSITION


class TestPlacementDerivedFields:
    def test_fee_value_and_guarantee_expiry_are_derived(self):
        result = validate("accepted", "placed", PLACEMENT_TERMS)
        assert result.ok
        assert isinstance(result.payload, PlacementFields)
        assert result.derived_fields == {
            "fee_value": 12000,
            "guarantee_expiry": date(2025, 5, 30),
        }

    def test_caller_supplied_derived_values_are_ignored(self):
        fields = {**PLACEMENT_TERMS, "fee_value": 1, "guarantee_expiry": "2030-01-01"}
        result = validate("accepted", "placed", fields)
        assert result.derived_fields["fee_value"] == 12000
        assert "fee_value" not in result.fields
        assert "guarantee_expiry" not in result.fields

    def test_fee_rounds_half_up(self):
        assert compute_fee_value(33333, 15) == 5000
        assert compute_fee_value(10001, 15) == 1500
        assert compute_fee_value(10003, 15) == 1500
        assert compute_fee_value(10010, 15) == 1502

    def test_fee_rounding_at_exact_half(self):
        # 12345 * 10% = 1234.5
        assert compute_fee_value(12345, 10) == 1235

    def test_guarantee_expiry_crosses_leap_day(self):
        assert compute_guarantee_expiry(date(2024, 2, 1), 30) == date(2024, 3, 2)

    def test_zero_guarantee_period(self):
        assert compute_guarantee_expiry(date(2025, 3, 1), 0) == date(2025, 3, 1)

    def test_fee_uses_amounts_at_stored_precision(self):
        # fee_percentage is kept to two decimal places, so 12.345% is 12.35%
        fields = {**PLACEMENT_TERMS, "salary": 100000, "fee_percentage": "12.345"}
        result = validate("accepted", "placed", fields)

        assert result.payload.fee_percentage == Decimal("12.35")
        assert result.derived_fields["fee_value"] == 12350
        assert result.derived_fields["fee_value"] == compute_fee_value(
            result.payload.salary, result.payload.fee_percentage
        )

    def test_salary_is_rounded_to_cents(self):
        result = validate("accepted", "placed", {**PLACEMENT_TERMS, "salary": "60000.005"})
        assert result.payload.salary == Decimal("60000.01")
