"""Read side of the try-on job store."""

from typing import List

from tryon.core.exceptions import NotFoundException
from tryon.jobs.models import Job
from tryon.jobs.store import JobStore


class JobQueryService:
    """Status lookup and listing for try-on jobs."""

    def __init__(self, store: JobStore):
        self.store = store

    def get_status(self, job_id: str) -> Job:
        job = self.store.get(job_id)
        if job is None:
            raise NotFoundException(f"Job not found: {job_id}")
        return job

    def list_all(self) -> List[Job]:
        """All known jobs, newest first."""
        return sorted(self.store.list(), key=lambda job: job.created_at, reverse=True)
