"""Job-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from opportunity.models.application import PipelineStatus
from opportunity.models.job import RemoteType


class JobBase(BaseModel):
    """Base schema with common job posting fields."""
    title: str = Field(min_length=1, max_length=500)
    company: str = Field(min_length=1, max_length=500)
    url: Optional[str] = None
    description: Optional[str] = None
    country: Optional[str] = Field(None, min_length=2, max_length=2)  # ISO code, e.g. "US"
    location: Optional[str] = None
    remote_type: Optional[RemoteType] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    rank_score: Optional[float] = Field(None, ge=0, le=100)


class JobCreate(JobBase):
    """Schema for capturing a new job posting."""

    @model_validator(mode="after")
    def check_salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("salary_min must not exceed salary_max")
        return self


class JobImportRequest(BaseModel):
    """Bulk import of job postings."""
    jobs: list[JobCreate] = Field(min_length=1)


class JobUpdate(BaseModel):
    """Partial update; status is the user-editable mirror, not the application status."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    company: Optional[str] = Field(None, min_length=1, max_length=500)
    url: Optional[str] = None
    description: Optional[str] = None
    country: Optional[str] = Field(None, min_length=2, max_length=2)
    location: Optional[str] = None
    remote_type: Optional[RemoteType] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    rank_score: Optional[float] = Field(None, ge=0, le=100)
    status: Optional[PipelineStatus] = None


class JobResponse(BaseModel):
    """Schema for job posting response."""
    id: UUID
    user_id: UUID
    title: str
    company: str
    url: Optional[str] = None
    description: Optional[str] = None
    country: Optional[str] = None
    location: Optional[str] = None
    remote_type: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    currency: str
    rank_score: Optional[float] = None
    status: str
    ingested_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobListResponse(BaseModel):
    """One page of jobs."""
    items: list[JobResponse]
    total: int
    limit: int
    offset: int
