"""
Audit trail: a trusted append-only writer and an owner-scoped reader.

AuditTrailWriter is constructed only inside services; no API route can reach
it, so end users can neither forge nor suppress entries attributed to them.
It appends in the caller's session, which makes the audit row commit or
roll back together with the mutation it describes.
"""
import logging
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from pydantic_core import to_jsonable_python
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity.exceptions import AuditWriteFailedError
from opportunity.models.audit_log import AuditLogEntry

logger = logging.getLogger(__name__)


class AuditTrailWriter:
    """Appends AuditLogEntry rows. Failures propagate as AuditWriteFailedError."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        acting_user_id: Optional[UUID],
        action: str,
        resource_type: str,
        resource_id: Optional[UUID] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            user_id=acting_user_id,
            action=action,
            resource=resource_type,
            resource_id=resource_id,
            details=to_jsonable_python(metadata or {}),
        )
        try:
            await self._append(entry)
        except SQLAlchemyError as e:
            logger.error(
                f"Audit write failed: {action} {resource_type} {resource_id}",
                exc_info=True,
            )
            raise AuditWriteFailedError(
                f"Failed to record audit entry for {action} on {resource_type}",
                cause=e,
                details={"action": action, "resource": resource_type},
            ) from e

        logger.debug(f"Audit: user={acting_user_id} {action} {resource_type} {resource_id}")
        return entry

    async def _append(self, entry: AuditLogEntry) -> None:
        self.db.add(entry)
        await self.db.flush()


class AuditLogReader:
    """Read-only view of a user's own audit entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_entries(
        self,
        user_id: UUID,
        resource: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[list[AuditLogEntry], int]:
        filters = [AuditLogEntry.user_id == user_id]
        if resource:
            filters.append(AuditLogEntry.resource == resource)

        total = await self.db.scalar(
            select(func.count()).select_from(AuditLogEntry).where(*filters)
        )
        result = await self.db.execute(
            select(AuditLogEntry)
            .where(*filters)
            .order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0
