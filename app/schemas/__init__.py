from .stage_fields import STAGE_FIELD_MODELS, PlacementFields, StageFieldsPayload
from .placement import Placement, PlacementUpdate, PlacementSummary, InvoiceRaise, RebateRequest
from .pipeline import (
    PipelineEntry,
    PipelineEntryCreate,
    PipelineEntryUpdate,
    PipelineEntryList,
    StageTransitionRecord,
    TransitionRequest,
    TransitionResponse,
    AllowedTransition,
    Scorecard,
    ScorecardCreate,
)
from .candidate import (
    Candidate,
    CandidateIdentityUpdate,
    ContactTouch,
    GDPRStatusResponse,
    GDPRSummary,
    BulkCandidateRequest,
    BulkResultResponse,
    DuplicateCandidate,
    DuplicateFlag,
    DuplicateScoreRequest,
    MatchResultResponse,
)

__all__ = [
    "STAGE_FIELD_MODELS", "PlacementFields", "StageFieldsPayload",
    "Placement", "PlacementUpdate", "PlacementSummary", "InvoiceRaise", "RebateRequest",
    "PipelineEntry", "PipelineEntryCreate", "PipelineEntryUpdate", "PipelineEntryList",
    "StageTransitionRecord", "TransitionRequest", "TransitionResponse", "AllowedTransition",
    "Scorecard", "ScorecardCreate",
    "Candidate", "CandidateIdentityUpdate", "ContactTouch", "GDPRStatusResponse", "GDPRSummary",
    "BulkCandidateRequest", "BulkResultResponse", "DuplicateCandidate", "DuplicateFlag",
    "DuplicateScoreRequest", "MatchResultResponse",
]
