"""Job identifiers."""

import uuid

JOB_ID_PREFIX = "job-"


def new_job_id() -> str:
    """Unique, unguessable job id, e.g. `job-0b9f6c1e-...`."""
    return f"{JOB_ID_PREFIX}{uuid.uuid4()}"
