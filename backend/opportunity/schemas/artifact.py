"""Artifact-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from opportunity.models.artifact import ArtifactType


class ArtifactCreate(BaseModel):
    """
    Output of the generation service.

    Has no `approved` field: new artifacts always start
    unapproved.
    """
    type: ArtifactType
    content: str = Field(min_length=1)
    job_id: Optional[UUID] = None
    version: str = Field("1.0", min_length=1, max_length=20)
    model: Optional[str] = None
    prompt_version: Optional[str] = None


class ArtifactRegenerateRequest(BaseModel):
    """New content for an existing artifact; stored as a new version."""
    content: str = Field(min_length=1)
    model: Optional[str] = None
    prompt_version: Optional[str] = None


class ArtifactResponse(BaseModel):
    """Schema for artifact response."""
    id: UUID
    user_id: UUID
    job_id: Optional[UUID] = None
    type: str
    content: str
    version: str
    model: Optional[str] = None
    prompt_version: Optional[str] = None
    approved: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class ArtifactListResponse(BaseModel):
    """One page of artifacts."""
    items: list[ArtifactResponse]
    total: int
    limit: int
    offset: int
