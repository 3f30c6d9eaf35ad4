"""Audit log Pydantic schemas (read-only)."""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AuditEntryResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    action: str
    resource: str
    resource_id: Optional[UUID] = None
    # ORM attribute is `details`; the column and API field are `metadata`
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias=AliasChoices("details", "metadata"))
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditListResponse(BaseModel):
    items: list[AuditEntryResponse]
    total: int
    limit: int
    offset: int
