"""
Audit trail API (read-only).

There is no write route: entries are only appended by the
services that perform the mutations.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from opportunity.api.auth import get_current_user
from opportunity.api.deps import get_audit_reader
from opportunity.models.user import User
from opportunity.schemas.audit import AuditEntryResponse, AuditListResponse
from opportunity.schemas.envelope import Envelope, ok
from opportunity.services.audit import AuditLogReader
from opportunity.services.base import page_bounds

router = APIRouter()


@router.get("/", response_model=Envelope[AuditListResponse])
async def list_audit_entries(
    resource: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    reader: AuditLogReader = Depends(get_audit_reader)
):
    """The current user's own audit entries, newest first."""
    limit, offset = page_bounds(limit, offset)
    entries, total = await reader.list_entries(current_user.id, resource=resource, limit=limit, offset=offset)
    return ok(AuditListResponse(
        items=[AuditEntryResponse.model_validate(entry) for entry in entries],
        total=total,
        limit=limit,
        offset=offset,
    ))
