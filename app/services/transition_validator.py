"""
Stage-transition validation.

``validate`` decides whether a pipeline entry may move from its current stage
to a requested stage given the field bag captured by the transition form.
It is a pure function: no I/O, no clock, no exceptions for rejected moves.
The caller (PipelineService) persists accepted transitions and converts
rejections into domain errors.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from app.core.exceptions import (
    IllegalTransition,
    InvalidFields,
    MissingRequiredFields,
    PipelineError,
)
from app.schemas.stage_fields import STAGE_FIELD_MODELS, PlacementFields, StageFieldsPayload
from app.utils.stage_graph import (
    PipelineStage,
    STAGE_LABELS,
    allowed_next,
    is_resumption,
    required_fields,
    to_stage,
)

# Derived by the validator, never accepted from the caller
DERIVED_PLACEMENT_KEYS = ("fee_value", "guarantee_expiry")


class RejectionCode(str, enum.Enum):
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    MISSING_REQUIRED_FIELDS = "MISSING_REQUIRED_FIELDS"
    INVALID_FIELDS = "INVALID_FIELDS"


@dataclass(frozen=True)
class AcceptedTransition:
    from_stage: PipelineStage
    to_stage: PipelineStage
    fields: dict[str, Any]
    payload: Optional[StageFieldsPayload] = None
    derived_fields: dict[str, Any] = field(default_factory=dict)

    ok = True

    @property
    def is_resumption(self) -> bool:
        return is_resumption(self.from_stage, self.to_stage)


@dataclass(frozen=True)
class TransitionRejection:
    code: RejectionCode
    message: str
    from_stage: PipelineStage
    to_stage: Optional[Union[PipelineStage, str]]
    missing_fields: tuple[str, ...] = ()
    invalid_fields: dict[str, str] = field(default_factory=dict)

    ok = False

    def details(self) -> dict[str, Any]:
        to_value = self.to_stage.value if isinstance(self.to_stage, PipelineStage) else self.to_stage
        details: dict[str, Any] = {"from_stage": self.from_stage.value, "to_stage": to_value}
        if self.code == RejectionCode.ILLEGAL_TRANSITION:
            details["allowed_stages"] = sorted(s.value for s in allowed_next(self.from_stage))
        if self.missing_fields:
            details["missing_fields"] = list(self.missing_fields)
        if self.invalid_fields:
            details["invalid_fields"] = dict(self.invalid_fields)
        return details

    def to_error(self) -> PipelineError:
        """Convert into the domain error raised at the service boundary."""
        error_cls = {
            RejectionCode.ILLEGAL_TRANSITION: IllegalTransition,
            RejectionCode.MISSING_REQUIRED_FIELDS: MissingRequiredFields,
            RejectionCode.INVALID_FIELDS: InvalidFields,
        }[self.code]
        return error_cls(self.message, self.details())


TransitionResult = Union[AcceptedTransition, TransitionRejection]


def is_empty(value: Any) -> bool:
    """Blank for the purpose of required-field checks. False and 0 are values."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


def compute_fee_value(salary: Any, fee_percentage: Any) -> int:
    """
    Placement fee in whole currency units, rounded half-up.

    Example:
        >>> compute_fee_value(33333, 15)
        5000
    """
    amount = Decimal(str(salary)) * Decimal(str(fee_percentage)) / Decimal(100)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_guarantee_expiry(start_date: date, guarantee_period_days: int) -> date:
    """Calendar-day addition; no time component, so no timezone drift."""
    return start_date + timedelta(days=int(guarantee_period_days))


def _format_validation_errors(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        key = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
        errors.setdefault(key, error.get("msg", "invalid value"))
    return errors


def validate(
    current_stage: Union[PipelineStage, str],
    target_stage: Union[PipelineStage, str],
    fields: Optional[Mapping[str, Any]] = None,
    paused_from: Union[PipelineStage, str, None] = None,
) -> TransitionResult:
    """
    Accept or reject a requested stage change.

    Args:
        current_stage: Stage the entry is in now
        target_stage: Requested stage
        fields: Key/value bag captured by the transition form
        paused_from: For on_hold entries, the stage they were paused from

    Returns:
        AcceptedTransition with the parsed payload and derived fields, or a
        TransitionRejection describing exactly what is wrong

    Example:
        >>> result = validate("submitted", "placed", {})
        >>> result.code
        <RejectionCode.ILLEGAL_TRANSITION: 'ILLEGAL_TRANSITION'>
    """
    current = to_stage(current_stage)
    bag = dict(fields or {})

    try:
        target = to_stage(target_stage)
    except ValueError:
        return TransitionRejection(
            code=RejectionCode.ILLEGAL_TRANSITION,
            message=f"Unknown stage '{target_stage}'",
            from_stage=current,
            to_stage=str(target_stage),
        )

    if target not in allowed_next(current, paused_from):
        return TransitionRejection(
            code=RejectionCode.ILLEGAL_TRANSITION,
            message=f"Cannot move from {STAGE_LABELS[current]} to {STAGE_LABELS[target]}",
            from_stage=current,
            to_stage=target,
        )

    required = required_fields(current, target)
    missing = tuple(key for key in required if is_empty(bag.get(key)))
    if missing:
        return TransitionRejection(
            code=RejectionCode.MISSING_REQUIRED_FIELDS,
            message=f"Missing required fields for {STAGE_LABELS[target]}: {', '.join(missing)}",
            from_stage=current,
            to_stage=target,
            missing_fields=missing,
        )

    payload = None
    derived: dict[str, Any] = {}
    if required:
        model = STAGE_FIELD_MODELS[target]
        try:
            payload = model.model_validate(bag)
        except ValidationError as exc:
            invalid = _format_validation_errors(exc)
            return TransitionRejection(
                code=RejectionCode.INVALID_FIELDS,
                message=f"Invalid values for {STAGE_LABELS[target]}: {', '.join(invalid)}",
                from_stage=current,
                to_stage=target,
                invalid_fields=invalid,
            )

    if isinstance(payload, PlacementFields):
        for key in DERIVED_PLACEMENT_KEYS:
            bag.pop(key, None)
        derived = {
            "fee_value": compute_fee_value(payload.salary, payload.fee_percentage),
            "guarantee_expiry": compute_guarantee_expiry(
                payload.start_date, payload.guarantee_period_days
            ),
        }

    return AcceptedTransition(
        from_stage=current,
        to_stage=target,
        fields=bag,
        payload=payload,
        derived_fields=derived,
    )
