"""Authentication-related Pydantic schemas."""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuthenticatedUser(BaseModel):
    """Identity returned by the OAuth provider after a successful code exchange."""
    id: UUID
    email: Optional[str] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class SessionUserResponse(BaseModel):
    """The signed-in user, as seen by the frontend."""
    id: UUID
    email: Optional[str] = None
    last_sign_in_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
