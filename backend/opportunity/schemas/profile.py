"""Profile-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from opportunity.models.profile import SeniorityLevel, RemotePreference


class ProfileUpdateRequest(BaseModel):
    """Request body for updating search preferences (partial update)."""
    preferred_countries: Optional[list[str]] = None
    target_roles: Optional[list[str]] = None
    seniority_level: Optional[SeniorityLevel] = None
    remote_preference: Optional[RemotePreference] = None

    @field_validator("preferred_countries")
    @classmethod
    def normalize_countries(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return value
        codes = [code.strip().upper() for code in value]
        for code in codes:
            if len(code) != 2 or not code.isalpha():
                raise ValueError(f"'{code}' is not a two-letter country code")
        return codes

    @field_validator("target_roles")
    @classmethod
    def strip_roles(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return value
        return [role.strip() for role in value if role.strip()]


class ProfileResponse(BaseModel):
    """Response with the user's profile."""
    id: UUID
    user_id: UUID

    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    linkedin_url: Optional[str] = None

    preferred_countries: list[str] = []
    target_roles: list[str] = []
    seniority_level: Optional[str] = None
    remote_preference: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
