"""Application pipeline Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ApplicationCreate(BaseModel):
    """Start tracking a job."""
    job_id: UUID
    notes: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    """
    New pipeline status.

    Kept as a plain string so the service reports out-of-enum values with
    its own validation error.
    """
    status: str


class NotesUpdateRequest(BaseModel):
    notes: Optional[str] = None


class ApplicationResponse(BaseModel):
    """Schema for application response."""
    id: UUID
    user_id: UUID
    job_id: UUID
    status: str
    applied_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplicationListResponse(BaseModel):
    """One page of applications."""
    items: list[ApplicationResponse]
    total: int
    limit: int
    offset: int
