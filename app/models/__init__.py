from .user import StaffUser, StaffRole
from .job import Job, JobStatus
from .candidate import Candidate
from .pipeline import PipelineEntry, StageTransitionRecord
from .placement import Placement, PlacementStatus
from .scorecard import InterviewScorecard
from .activity_log import ActivityLog

__all__ = [
    "StaffUser", "StaffRole", "Job", "JobStatus", "Candidate",
    "PipelineEntry", "StageTransitionRecord", "Placement", "PlacementStatus",
    "InterviewScorecard", "ActivityLog"
]
