"""
Typed field payloads, one per transition type.

The stage-transition form posts a loose key/value bag. Once the validator has
confirmed every required key is present, the bag is parsed into the model for
the target stage so downstream code works with typed values (dates, Decimals)
and a ``kind`` tag instead of raw strings.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from app.utils.stage_graph import PipelineStage

InterviewType = Literal["phone", "video", "in_person", "assessment"]
RejectionCategory = Literal[
    "client_rejected",
    "not_suitable",
    "failed_interview",
    "salary_mismatch",
    "location_issue",
    "timing",
    "candidate_withdrew",
    "other",
]
PlacementJobType = Literal["permanent", "contract", "temp_to_perm", "interim"]


class _StageFields(BaseModel):
    model_config = {"extra": "ignore", "str_strip_whitespace": True}


def _must_be_confirmed(value: bool) -> bool:
    if value is not True:
        raise ValueError("must be confirmed")
    return value


# Placement amounts are stored as NUMERIC(_, 2)
_CENTS = Decimal("0.01")


def _to_column_scale(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


class ContactedFields(_StageFields):
    kind: Literal["contacted"] = "contacted"
    contact_note: str


class QualifiedFields(_StageFields):
    kind: Literal["qualified"] = "qualified"
    salary_confirmed: Decimal = Field(ge=0)
    availability_confirmed: str
    qualification_notes: str


class SubmittedFields(_StageFields):
    kind: Literal["submitted"] = "submitted"
    submission_notes: str
    client_contact_confirmed: bool

    check_confirmed = field_validator("client_contact_confirmed")(_must_be_confirmed)


class FirstInterviewFields(_StageFields):
    kind: Literal["interview_1"] = "interview_1"
    interview_date_time: datetime
    interview_type: InterviewType
    location_or_link: str


class SecondInterviewFields(_StageFields):
    kind: Literal["interview_2"] = "interview_2"
    previous_scorecard: str
    interview_date_time: datetime

    @field_validator("previous_scorecard", mode="before")
    @classmethod
    def coerce_scorecard_ref(cls, value):
        # Scorecard ids arrive as UUID objects when filled in by the service
        return str(value) if value is not None else value


class FinalInterviewFields(SecondInterviewFields):
    kind: Literal["final"] = "final"
    interviewer: str


class OfferFields(_StageFields):
    kind: Literal["offer"] = "offer"
    offer_salary: Decimal = Field(ge=0)
    start_date: date
    benefits: str


class AcceptedFields(_StageFields):
    kind: Literal["accepted"] = "accepted"
    acceptance_confirmation: bool
    start_date: date

    check_confirmed = field_validator("acceptance_confirmation")(_must_be_confirmed)


class PlacementFields(_StageFields):
    kind: Literal["placement"] = "placement"
    start_date: date
    salary: Decimal = Field(gt=0)
    fee_percentage: Decimal = Field(ge=0, le=100)
    guarantee_period_days: int = Field(ge=0)
    job_type: PlacementJobType = "permanent"
    fee_currency: Optional[str] = None
    split_with: Optional[str] = None
    split_percentage: Decimal = Field(default=Decimal("100"), ge=0, le=100)
    notes: Optional[str] = None

    round_amounts = field_validator("salary", "fee_percentage", "split_percentage")(_to_column_scale)


class RejectedFields(_StageFields):
    kind: Literal["rejected"] = "rejected"
    rejection_reason: str
    rejection_category: RejectionCategory


class OnHoldFields(_StageFields):
    kind: Literal["on_hold"] = "on_hold"
    hold_reason: str
    expected_resume_date: Optional[date] = None


StageFieldsPayload = Union[
    ContactedFields,
    QualifiedFields,
    SubmittedFields,
    FirstInterviewFields,
    SecondInterviewFields,
    FinalInterviewFields,
    OfferFields,
    AcceptedFields,
    PlacementFields,
    RejectedFields,
    OnHoldFields,
]

STAGE_FIELD_MODELS: dict[PipelineStage, type[_StageFields]] = {
    PipelineStage.CONTACTED: ContactedFields,
    PipelineStage.QUALIFIED: QualifiedFields,
    PipelineStage.SUBMITTED: SubmittedFields,
    PipelineStage.INTERVIEW_1: FirstInterviewFields,
    PipelineStage.INTERVIEW_2: SecondInterviewFields,
    PipelineStage.FINAL: FinalInterviewFields,
    PipelineStage.OFFER: OfferFields,
    PipelineStage.ACCEPTED: AcceptedFields,
    PipelineStage.PLACED: PlacementFields,
    PipelineStage.REJECTED: RejectedFields,
    PipelineStage.ON_HOLD: OnHoldFields,
}
