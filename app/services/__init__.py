from .activity_log_service import ActivityLogService
from .pipeline_service import PipelineService, TransitionOutcome
from .candidate_service import CandidateService, BulkResult
from .placement_service import PlacementService

__all__ = [
    "ActivityLogService",
    "PipelineService",
    "TransitionOutcome",
    "CandidateService",
    "BulkResult",
    "PlacementService",
]
