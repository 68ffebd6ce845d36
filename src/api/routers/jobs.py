"""
Jobs router for job management API.

- POST /jobs - Create job (status: pending)
- GET /jobs - List jobs, newest first (optional status/priority filters)
- GET /jobs/{job_id} - Get job details
- POST /run-job/{job_id} - Start a pending job; returns before it completes

The completion webhook outcome appears on the job as ``webhookLog``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ..schemas.jobs import (
    JobCreateRequest,
    JobResponse,
    JobRunResponse,
)
from .._service_state import get_job_service
from src.jobs.entities import Job
from src.jobs.errors import (
    InvalidInputError,
    InvalidTransitionError,
    JobNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _job_to_response(job: Job) -> JobResponse:
    """Convert Job entity to API response."""
    return JobResponse(
        id=job.job_id,
        task_name=job.task_name,
        payload=job.payload,
        priority=job.priority.value,
        status=job.status.value,
        created_at=job.created_at,
        updated_at=job.updated_at,
        webhook_log=job.webhook_log,
    )


@router.post("/jobs", response_model=JobResponse, status_code=201)
def create_job(request: JobCreateRequest):
    """
    Create a new job in pending status.

    ``payload`` may be a JSON object/array or its JSON text; it is stored as
    canonical JSON text.
    """
    service = get_job_service()

    try:
        job = service.create(
            task_name=request.task_name,
            payload=request.payload,
            priority=request.priority,
        )
        return _job_to_response(job)

    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Error creating job")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to create job: {str(e)}"
        )


@router.get("/jobs", response_model=list[JobResponse])
def list_jobs(
    status: Optional[str] = Query(default=None, description="pending, running or completed"),
    priority: Optional[str] = Query(default=None, description="Low, Medium or High"),
):
    """
    List jobs ordered by creation time (newest first).

    Filters are exact-match and combinable.
    """
    service = get_job_service()

    try:
        jobs = service.list_jobs(status=status, priority=priority)
        return [_job_to_response(job) for job in jobs]

    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Error fetching jobs")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list jobs: {str(e)}"
        )


@router.get("/jobs/{job_id}", response_model=JobResponse)
def get_job(job_id: str):
    """Get a specific job by ID."""
    service = get_job_service()

    try:
        return _job_to_response(service.get(job_id))

    except JobNotFoundError:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    except Exception as e:
        logger.exception(f"Error fetching job {job_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to get job: {str(e)}"
        )


@router.post("/run-job/{job_id}", response_model=JobRunResponse)
def run_job(job_id: str):
    """
    Start a pending job.

    The job becomes ``running`` before this returns. Processing, the
    ``completed`` transition and the webhook call continue in the
    background.
    """
    service = get_job_service()

    try:
        ack = service.run(job_id)
        return JobRunResponse(
            message=ack.message,
            job_id=ack.job_id,
            status=ack.status.value,
        )

    except JobNotFoundError:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error running job {job_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to start job: {str(e)}"
        )
