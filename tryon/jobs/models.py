"""Try-on job models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


class Job(BaseModel):
    """
    One try-on generation request and its lifecycle record.

    Records are immutable. Every status change produces a new record, and the
    validator below rejects any combination of fields that cannot occur for
    the given status.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    status: JobStatus
    source_product_id: Optional[str] = None
    prompt: str
    result_image_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_duration_seconds: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_status_fields(self) -> "Job":
        terminal = self.status.is_terminal
        if terminal != (self.completed_at is not None):
            raise ValueError("completed_at must be set exactly when the job is terminal")
        if (self.status == JobStatus.SUCCEEDED) != (self.result_image_url is not None):
            raise ValueError("result_image_url must be set exactly when the job succeeded")
        if (self.status == JobStatus.FAILED) != (self.error_message is not None):
            raise ValueError("error_message must be set exactly when the job failed")
        if self.status == JobStatus.QUEUED and self.started_at is not None:
            raise ValueError("started_at must not be set on a queued job")
        if self.status != JobStatus.QUEUED and self.started_at is None:
            raise ValueError("started_at must be set once the job has started")
        return self


class JobCreateResponse(BaseModel):
    job_id: str
    status: JobStatus
    estimated_duration_seconds: int


class JobListResponse(BaseModel):
    jobs: List[Job]
    count: int
