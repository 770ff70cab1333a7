"""In-memory job store."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from tryon.jobs.models import Job, JobStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    JobStatus.QUEUED: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.SUCCEEDED, JobStatus.FAILED},
    JobStatus.SUCCEEDED: set(),
    JobStatus.FAILED: set(),
}


class InvalidTransitionError(RuntimeError):
    """A status change the job state machine does not allow."""

    def __init__(self, job_id: str, current: JobStatus, target: JobStatus):
        super().__init__(f"Invalid transition for {job_id}: {current.value} -> {target.value}")
        self.job_id = job_id
        self.current = current
        self.target = target


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStore:
    """
    Thread-safe map of job id to Job.

    Records are immutable and replaced whole, so a reader holding a record
    never sees it change. The lock only guards the dict itself.
    """

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def put(self, job: Job) -> None:
        with self._lock:
            self._jobs[job.job_id] = job

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def discard(self, job_id: str) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)

    def list(self) -> List[Job]:
        with self._lock:
            return list(self._jobs.values())

    def transition(
        self,
        job_id: str,
        status: JobStatus,
        result_image_url: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Job:
        """
        Move a job to `status` and return the new record.

        Raises KeyError for an unknown id and InvalidTransitionError when the
        state machine forbids the move.
        """
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise KeyError(job_id)
            if status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidTransitionError(job_id, current.status, status)

            now = _utcnow()
            fields = current.model_dump()
            fields["status"] = status
            if status == JobStatus.RUNNING:
                fields["started_at"] = now
            else:
                fields["completed_at"] = now
                fields["result_image_url"] = result_image_url if status == JobStatus.SUCCEEDED else None
                fields["error_message"] = error_message if status == JobStatus.FAILED else None

            updated = Job(**fields)
            self._jobs[job_id] = updated

        logger.debug(f"Job {job_id}: {current.status.value} -> {status.value}")
        return updated

    def prune_completed(self, older_than: timedelta) -> int:
        """Drop terminal jobs that completed more than `older_than` ago."""
        cutoff = _utcnow() - older_than
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.completed_at is not None and job.completed_at < cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]
        if expired:
            logger.info(f"Pruned {len(expired)} completed jobs")
        return len(expired)
