"""Virtual try-on job API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from starlette.concurrency import run_in_threadpool

from tryon.core.dependencies import get_dispatcher, get_job_query_service, read_upload
from tryon.jobs.models import Job, JobCreateResponse, JobListResponse
from tryon.jobs.runner import TryOnDispatcher
from tryon.jobs.service import JobQueryService

router = APIRouter(prefix="/tryon", tags=["Try-On"])

PROMPT_MAX_LENGTH = 500


@router.post("", response_model=JobCreateResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_tryon(
    user_image: Optional[UploadFile] = File(None),
    product_id: Optional[str] = Form(None),
    product_image: Optional[UploadFile] = File(None),
    prompt: Optional[str] = Form(None, max_length=PROMPT_MAX_LENGTH),
    dispatcher: TryOnDispatcher = Depends(get_dispatcher),
):
    """
    Submit a virtual try-on request.

    Send the customer's photo as `user_image` plus either a catalog
    `product_id` or an uploaded `product_image`. Returns immediately with a
    queued job; poll `GET /tryon/{job_id}` for the result.
    """
    job = await run_in_threadpool(
        dispatcher.submit,
        user_image=await read_upload(user_image),
        product_id=product_id,
        product_image=await read_upload(product_image),
        prompt=prompt,
    )
    return JobCreateResponse(
        job_id=job.job_id,
        status=job.status,
        estimated_duration_seconds=job.estimated_duration_seconds,
    )


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(service: JobQueryService = Depends(get_job_query_service)):
    """List all try-on jobs, newest first."""
    jobs = service.list_all()
    return JobListResponse(jobs=jobs, count=len(jobs))


@router.get("/{job_id}", response_model=Job)
async def get_job(
    job_id: str = Path(..., description="Job ID"),
    service: JobQueryService = Depends(get_job_query_service),
):
    """Get the current state of a try-on job."""
    return service.get_status(job_id)
