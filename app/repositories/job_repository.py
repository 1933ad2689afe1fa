from app.models.job import Job
from .base import BaseRepository


class JobRepository(BaseRepository[Job]):
    """Read access to job requisitions; job CRUD lives elsewhere."""

    def __init__(self):
        super().__init__(Job)
