"""
Application pipeline API endpoints.

Every route is owner-scoped; the pipeline service raises NotFound for a
missing record and Forbidden for someone else's.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from opportunity.api.auth import get_current_user
from opportunity.api.deps import get_pipeline_service
from opportunity.models.user import User
from opportunity.schemas.application import (
    ApplicationCreate,
    StatusUpdateRequest,
    NotesUpdateRequest,
    ApplicationResponse,
    ApplicationListResponse
)
from opportunity.schemas.envelope import Envelope, ok
from opportunity.services.pipeline import ApplicationPipelineService

logger = logging.getLogger(__name__)
router = APIRouter()


# Endpoints
@router.post("/", response_model=Envelope[ApplicationResponse], status_code=201)
async def create_application(
    request: ApplicationCreate,
    current_user: User = Depends(get_current_user),
    service: ApplicationPipelineService = Depends(get_pipeline_service)
):
    """
    Start tracking a job in the pipeline (status "saved").

    Returns:
        201: Application created
        404/403: Job missing or not yours
        409: Already tracking this job
    """
    application = await service.create_application(current_user.id, request.job_id, request.notes)
    return ok(ApplicationResponse.model_validate(application))


@router.get("/", response_model=Envelope[ApplicationListResponse])
async def list_applications(
    status: Optional[str] = None,
    country: Optional[str] = None,
    sort: str = "created_at",
    direction: str = "desc",
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    service: ApplicationPipelineService = Depends(get_pipeline_service)
):
    page = await service.list_applications(
        current_user.id,
        status=status,
        country=country,
        sort=sort,
        direction=direction,
        limit=limit,
        offset=offset,
    )
    return ok(ApplicationListResponse(
        items=[ApplicationResponse.model_validate(item) for item in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    ))


@router.get("/{application_id}", response_model=Envelope[ApplicationResponse])
async def get_application(
    application_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ApplicationPipelineService = Depends(get_pipeline_service)
):
    application = await service.get_application(current_user.id, application_id)
    return ok(ApplicationResponse.model_validate(application))


@router.put("/{application_id}/status", response_model=Envelope[ApplicationResponse])
async def update_status(
    application_id: UUID,
    request: StatusUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: ApplicationPipelineService = Depends(get_pipeline_service)
):
    """Move the application to any status; applied_at is set once, on first entry into "applied"."""
    application = await service.update_status(current_user.id, application_id, request.status)
    return ok(ApplicationResponse.model_validate(application))


@router.put("/{application_id}/notes", response_model=Envelope[ApplicationResponse])
async def update_notes(
    application_id: UUID,
    request: NotesUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: ApplicationPipelineService = Depends(get_pipeline_service)
):
    application = await service.update_notes(current_user.id, application_id, request.notes)
    return ok(ApplicationResponse.model_validate(application))


@router.delete("/{application_id}", response_model=Envelope[dict])
async def delete_application(
    application_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ApplicationPipelineService = Depends(get_pipeline_service)
):
    await service.delete_application(current_user.id, application_id)
    return ok({"deleted": str(application_id)})
