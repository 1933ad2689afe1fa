# Repositories package
from .base import BaseRepository
from .job_repository import JobRepository
from .candidate_repository import CandidateRepository
from .pipeline_repository import PipelineRepository, StageTransitionRepository
from .placement_repository import PlacementRepository, ScorecardRepository
from .activity_log_repository import ActivityLogRepository

__all__ = [
    "BaseRepository",
    "JobRepository",
    "CandidateRepository",
    "PipelineRepository",
    "StageTransitionRepository",
    "PlacementRepository",
    "ScorecardRepository",
    "ActivityLogRepository",
]
