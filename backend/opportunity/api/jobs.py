"""
Job postings API endpoints.
Handles capture, bulk import, editing, listing and deletion of jobs.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from opportunity.api.auth import get_current_user
from opportunity.api.deps import get_job_service
from opportunity.models.user import User
from opportunity.schemas.envelope import Envelope, ok
from opportunity.schemas.job import JobCreate, JobImportRequest, JobUpdate, JobResponse, JobListResponse
from opportunity.services.jobs import JobService

logger = logging.getLogger(__name__)
router = APIRouter()


# Endpoints
@router.post("/", response_model=Envelope[JobResponse], status_code=201)
async def create_job(
    job_data: JobCreate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """Capture a single job posting."""
    job = await service.create_job(current_user.id, job_data.model_dump(exclude_unset=True))
    return ok(JobResponse.model_validate(job))


@router.post("/import", response_model=Envelope[list[JobResponse]], status_code=201)
async def import_jobs(
    request: JobImportRequest,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """
    Bulk import. One invalid posting rejects the whole batch.

    Returns:
        201: All postings stored
        422: Validation error or batch too large
    """
    jobs = await service.import_jobs(
        current_user.id, [item.model_dump(exclude_unset=True) for item in request.jobs]
    )
    return ok([JobResponse.model_validate(job) for job in jobs])


@router.get("/", response_model=Envelope[JobListResponse])
async def list_jobs(
    status: Optional[str] = None,
    country: Optional[str] = None,
    remote_type: Optional[str] = None,
    sort: str = "created_at",
    direction: str = "desc",
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """
    List the current user's jobs.

    Sort keys: created_at (default, newest first), rank_score (unranked last).
    """
    page = await service.list_jobs(
        current_user.id,
        status=status,
        country=country,
        remote_type=remote_type,
        sort=sort,
        direction=direction,
        limit=limit,
        offset=offset,
    )
    return ok(JobListResponse(
        items=[JobResponse.model_validate(job) for job in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    ))


@router.get("/{job_id}", response_model=Envelope[JobResponse])
async def get_job(
    job_id: UUID,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    job = await service.get_job(current_user.id, job_id)
    return ok(JobResponse.model_validate(job))


@router.patch("/{job_id}", response_model=Envelope[JobResponse])
async def update_job(
    job_id: UUID,
    changes: JobUpdate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """Partial update. Does not affect any application's status."""
    job = await service.update_job(current_user.id, job_id, changes.model_dump(exclude_unset=True))
    return ok(JobResponse.model_validate(job))


@router.delete("/{job_id}", response_model=Envelope[dict])
async def delete_job(
    job_id: UUID,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """Delete a job together with its applications and artifacts."""
    await service.delete_job(current_user.id, job_id)
    return ok({"deleted": str(job_id)})
