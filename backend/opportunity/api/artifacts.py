"""
Artifacts API endpoints.

Generated documents are stored unapproved; /approve is the only way to
flip the approval gate.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from opportunity.api.auth import get_current_user
from opportunity.api.deps import get_artifact_service
from opportunity.models.user import User
from opportunity.schemas.artifact import (
    ArtifactCreate,
    ArtifactRegenerateRequest,
    ArtifactResponse,
    ArtifactListResponse
)
from opportunity.schemas.envelope import Envelope, ok
from opportunity.services.artifacts import ArtifactService

logger = logging.getLogger(__name__)
router = APIRouter()


# Endpoints
@router.post("/", response_model=Envelope[ArtifactResponse], status_code=201)
async def create_artifact(
    request: ArtifactCreate,
    current_user: User = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    """Store a generated CV, cover letter or message (always unapproved)."""
    artifact = await service.create_artifact(current_user.id, request.model_dump())
    return ok(ArtifactResponse.model_validate(artifact))


@router.get("/", response_model=Envelope[ArtifactListResponse])
async def list_artifacts(
    job_id: Optional[UUID] = None,
    type: Optional[str] = None,
    approved: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    page = await service.list_artifacts(
        current_user.id,
        job_id=job_id,
        artifact_type=type,
        approved=approved,
        limit=limit,
        offset=offset,
    )
    return ok(ArtifactListResponse(
        items=[ArtifactResponse.model_validate(item) for item in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    ))


@router.get("/{artifact_id}", response_model=Envelope[ArtifactResponse])
async def get_artifact(
    artifact_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    artifact = await service.get_artifact(current_user.id, artifact_id)
    return ok(ArtifactResponse.model_validate(artifact))


@router.post("/{artifact_id}/approve", response_model=Envelope[ArtifactResponse])
async def approve_artifact(
    artifact_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    artifact = await service.approve_artifact(current_user.id, artifact_id)
    return ok(ArtifactResponse.model_validate(artifact))


@router.post("/{artifact_id}/regenerate", response_model=Envelope[ArtifactResponse], status_code=201)
async def regenerate_artifact(
    artifact_id: UUID,
    request: ArtifactRegenerateRequest,
    current_user: User = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    """Store new content as the next version; the new version starts unapproved."""
    artifact = await service.regenerate_artifact(
        current_user.id,
        artifact_id,
        request.content,
        model=request.model,
        prompt_version=request.prompt_version,
    )
    return ok(ArtifactResponse.model_validate(artifact))


@router.delete("/{artifact_id}", response_model=Envelope[dict])
async def delete_artifact(
    artifact_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    await service.delete_artifact(current_user.id, artifact_id)
    return ok({"deleted": str(artifact_id)})
