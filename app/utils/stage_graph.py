"""
Pipeline stage definitions and the legal-transition graph.

A pipeline entry moves one step at a time along the active path:

    sourced -> contacted -> qualified -> submitted -> interview_1 ->
    interview_2 -> final -> offer -> accepted -> placed

From any non-terminal stage it may also move sideways to ``rejected`` or
``on_hold``. An entry that is ``on_hold`` can resume only to the stage it was
paused from (or be rejected). ``placed`` and ``rejected`` are terminal.

Moving backwards along the active path is never allowed; re-opening a
candidate means pausing and resuming, not rewinding.
"""

from __future__ import annotations

import enum
from typing import Optional


class PipelineStage(str, enum.Enum):
    SOURCED = "sourced"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    SUBMITTED = "submitted"
    INTERVIEW_1 = "interview_1"
    INTERVIEW_2 = "interview_2"
    FINAL = "final"
    OFFER = "offer"
    ACCEPTED = "accepted"
    PLACED = "placed"
    REJECTED = "rejected"
    ON_HOLD = "on_hold"


ACTIVE_PATH: tuple[PipelineStage, ...] = (
    PipelineStage.SOURCED,
    PipelineStage.CONTACTED,
    PipelineStage.QUALIFIED,
    PipelineStage.SUBMITTED,
    PipelineStage.INTERVIEW_1,
    PipelineStage.INTERVIEW_2,
    PipelineStage.FINAL,
    PipelineStage.OFFER,
    PipelineStage.ACCEPTED,
    PipelineStage.PLACED,
)

SIDE_STAGES: tuple[PipelineStage, ...] = (PipelineStage.REJECTED, PipelineStage.ON_HOLD)

TERMINAL_STAGES: frozenset[PipelineStage] = frozenset({PipelineStage.PLACED, PipelineStage.REJECTED})

INTERVIEW_STAGES: tuple[PipelineStage, ...] = (
    PipelineStage.INTERVIEW_1,
    PipelineStage.INTERVIEW_2,
    PipelineStage.FINAL,
)

INITIAL_STAGE = PipelineStage.SOURCED

STAGE_LABELS: dict[PipelineStage, str] = {
    PipelineStage.SOURCED: "Sourced",
    PipelineStage.CONTACTED: "Contacted",
    PipelineStage.QUALIFIED: "Qualified",
    PipelineStage.SUBMITTED: "Submitted",
    PipelineStage.INTERVIEW_1: "Interview 1",
    PipelineStage.INTERVIEW_2: "Interview 2",
    PipelineStage.FINAL: "Final Interview",
    PipelineStage.OFFER: "Offer",
    PipelineStage.ACCEPTED: "Accepted",
    PipelineStage.PLACED: "Placed",
    PipelineStage.REJECTED: "Rejected",
    PipelineStage.ON_HOLD: "On Hold",
}

# Keys that must be present (and non-empty) when entering a stage.
# Order matters: missing keys are reported in this order.
REQUIRED_FIELDS: dict[PipelineStage, tuple[str, ...]] = {
    PipelineStage.CONTACTED: ("contact_note",),
    PipelineStage.QUALIFIED: ("salary_confirmed", "availability_confirmed", "qualification_notes"),
    PipelineStage.SUBMITTED: ("submission_notes", "client_contact_confirmed"),
    PipelineStage.INTERVIEW_1: ("interview_date_time", "interview_type", "location_or_link"),
    PipelineStage.INTERVIEW_2: ("previous_scorecard", "interview_date_time"),
    PipelineStage.FINAL: ("previous_scorecard", "interview_date_time", "interviewer"),
    PipelineStage.OFFER: ("offer_salary", "start_date", "benefits"),
    PipelineStage.ACCEPTED: ("acceptance_confirmation", "start_date"),
    PipelineStage.PLACED: ("start_date", "salary", "fee_percentage", "guarantee_period_days"),
    PipelineStage.REJECTED: ("rejection_reason", "rejection_category"),
    PipelineStage.ON_HOLD: ("hold_reason",),
}


def to_stage(value: "str | PipelineStage") -> PipelineStage:
    """
    Coerce a raw stage string into a PipelineStage.

    Raises:
        ValueError: If the value is not one of the 12 stages
    """
    if isinstance(value, PipelineStage):
        return value
    if not value:
        raise ValueError("stage cannot be None or empty")
    try:
        return PipelineStage(value.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown pipeline stage: {value}") from None


def stage_index(stage: "str | PipelineStage") -> Optional[int]:
    """Position on the active path, or None for side stages."""
    stage = to_stage(stage)
    if stage in ACTIVE_PATH:
        return ACTIVE_PATH.index(stage)
    return None


def is_terminal(stage: "str | PipelineStage") -> bool:
    return to_stage(stage) in TERMINAL_STAGES


def allowed_next(
    stage: "str | PipelineStage",
    paused_from: "str | PipelineStage | None" = None,
) -> frozenset[PipelineStage]:
    """
    Stages reachable from ``stage`` in a single hop.

    Args:
        stage: Current stage
        paused_from: For ``on_hold`` entries, the stage the entry was paused
            from. Without it an on-hold entry can only be rejected.

    Returns:
        Set of legal target stages (empty for terminal stages)

    Example:
        >>> sorted(s.value for s in allowed_next("offer"))
        ['accepted', 'on_hold', 'rejected']
    """
    stage = to_stage(stage)
    if stage in TERMINAL_STAGES:
        return frozenset()

    if stage == PipelineStage.ON_HOLD:
        targets = {PipelineStage.REJECTED}
        if paused_from is not None:
            resume_to = to_stage(paused_from)
            if resume_to in ACTIVE_PATH and resume_to not in TERMINAL_STAGES:
                targets.add(resume_to)
        return frozenset(targets)

    targets = set(SIDE_STAGES)
    position = ACTIVE_PATH.index(stage)
    if position + 1 < len(ACTIVE_PATH):
        targets.add(ACTIVE_PATH[position + 1])
    return frozenset(targets)


def is_resumption(from_stage: "str | PipelineStage", to_stage_: "str | PipelineStage") -> bool:
    """True when leaving on_hold for an active-path stage."""
    return to_stage(from_stage) == PipelineStage.ON_HOLD and to_stage(to_stage_) in ACTIVE_PATH


def required_fields(
    from_stage: "str | PipelineStage",
    target_stage: "str | PipelineStage",
) -> tuple[str, ...]:
    """
    Mandatory keys for moving from ``from_stage`` into ``target_stage``.

    Resuming from on_hold requires nothing: the stage's fields were captured
    when it was first entered.
    """
    if is_resumption(from_stage, target_stage):
        return ()
    return REQUIRED_FIELDS.get(to_stage(target_stage), ())


def is_backward(from_stage: "str | PipelineStage", target_stage: "str | PipelineStage") -> bool:
    """True when target sits earlier on the active path than from_stage."""
    from_idx = stage_index(from_stage)
    to_idx = stage_index(target_stage)
    if from_idx is None or to_idx is None:
        return False
    return to_idx < from_idx


def get_valid_stages() -> list[str]:
    return [stage.value for stage in PipelineStage]
