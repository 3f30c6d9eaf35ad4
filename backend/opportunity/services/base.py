"""Shared plumbing for owner-scoped, audited services."""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Generic, List, Optional, TypeVar, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from opportunity.config import settings
from opportunity.exceptions import ForbiddenError, NotFoundError, ValidationError
from opportunity.services.audit import AuditTrailWriter

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One bounded slice of a listing."""
    items: List[T] = field(default_factory=list)
    total: int = 0
    limit: int = 0
    offset: int = 0


def as_uuid(value: Union[str, UUID], label: str = "id") -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {label}: {value}", details={"field": label})


def page_bounds(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    """Resolve pagination; there is no unbounded mode."""
    if limit is None:
        limit = settings.default_page_size
    offset = offset or 0
    if limit < 1 or limit > settings.max_page_size:
        raise ValidationError(
            f"limit must be between 1 and {settings.max_page_size}",
            details={"field": "limit", "value": limit},
        )
    if offset < 0:
        raise ValidationError("offset must not be negative", details={"field": "offset", "value": offset})
    return limit, offset


def ensure_owner(resource: Any, user_id: UUID, label: str, resource_id: Any):
    """
    Row-level authorization: the resource must exist and belong to user_id.

    NotFound and Forbidden are kept distinct so callers can tell a typo from
    someone else's record.
    """
    if resource is None:
        raise NotFoundError(f"{label} {resource_id} not found", details={"resource": label.lower()})
    if resource.user_id != user_id:
        logger.warning(
            f"User {user_id} denied access to {label.lower()} {resource_id} owned by {resource.user_id}"
        )
        raise ForbiddenError(
            f"You do not have access to {label.lower()} {resource_id}",
            details={"resource": label.lower()},
        )
    return resource


class AuditedService:
    """
    Base for services whose mutations are recorded in the audit trail.

    The audit writer shares the service's session so a mutation and its
    audit entry commit together.
    """

    def __init__(self, db: AsyncSession, audit: Optional[AuditTrailWriter] = None):
        self.db = db
        self.audit = audit or AuditTrailWriter(db)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Commit on success; roll back and re-raise on any failure."""
        try:
            yield self.db
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
