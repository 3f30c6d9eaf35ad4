"""
Application pipeline service.

Owns the lifecycle of Application rows: one per (user, job), status moved
through services.state_machine, every mutation recorded in the audit trail
within the same transaction. An application's status never touches the
linked job's own status field.
"""
import logging
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from opportunity.database_types import utcnow
from opportunity.exceptions import DuplicateApplicationError, ValidationError
from opportunity.models.application import Application, PipelineStatus
from opportunity.models.job import Job
from opportunity.services.base import AuditedService, Page, as_uuid, ensure_owner, page_bounds
from opportunity.services.state_machine import apply_transition, parse_status, status_rank_expression

logger = logging.getLogger(__name__)

APPLICATION_SORT_KEYS = ("created_at", "status")


class ApplicationPipelineService(AuditedService):

    async def get_application(self, user_id: UUID, application_id: Union[str, UUID]) -> Application:
        application_id = as_uuid(application_id, "application_id")
        application = await self.db.get(Application, application_id)
        return ensure_owner(application, user_id, "Application", application_id)

    async def create_application(
        self,
        user_id: UUID,
        job_id: Union[str, UUID],
        notes: Optional[str] = None
    ) -> Application:
        """
        Start tracking a job. A second call for the same job is a caller error.

        Raises:
            NotFoundError / ForbiddenError: Job missing or owned by someone else
            DuplicateApplicationError: An application already exists for this job
            AuditWriteFailedError: Audit append failed (nothing is persisted)
        """
        job_id = as_uuid(job_id, "job_id")
        job = await self.db.get(Job, job_id)
        ensure_owner(job, user_id, "Job", job_id)

        existing = await self.db.execute(
            select(Application.id).where(
                Application.user_id == user_id,
                Application.job_id == job_id
            )
        )
        if existing.scalar_one_or_none() is not None:
            logger.warning(f"Duplicate application attempt by user {user_id} for job {job_id}")
            raise DuplicateApplicationError(
                f"An application for job {job_id} already exists",
                details={"job_id": str(job_id)},
            )

        application = Application(
            user_id=user_id,
            job_id=job_id,
            status=PipelineStatus.SAVED.value,
            applied_at=None,
            notes=notes,
        )

        async with self.transaction():
            self.db.add(application)
            try:
                await self.db.flush()
            except IntegrityError as e:
                # Lost a double-submit race against the unique constraint
                raise DuplicateApplicationError(
                    f"An application for job {job_id} already exists",
                    details={"job_id": str(job_id)},
                ) from e
            await self.audit.record(
                user_id, "create", "application", application.id,
                {"job_id": job_id, "status": application.status},
            )

        await self.db.refresh(application)
        logger.info(
            f"Created application {application.id} for job {job_id}",
            extra={"application_id": str(application.id), "job_id": str(job_id), "user_id": str(user_id)},
        )
        return application

    async def update_status(
        self,
        user_id: UUID,
        application_id: Union[str, UUID],
        new_status: Union[str, PipelineStatus]
    ) -> Application:
        """
        Move an application to any pipeline status.

        applied_at is stamped on the first entry into "applied" and kept on
        every later transition.
        """
        application = await self.get_application(user_id, application_id)
        target = parse_status(new_status)

        async with self.transaction():
            previous = apply_transition(application, target)
            application.updated_at = utcnow()
            await self.db.flush()
            await self.audit.record(
                user_id, "update", "application", application.id,
                {"field": "status", "old_status": previous.value, "new_status": target.value},
            )

        await self.db.refresh(application)
        logger.info(
            f"Application status transition: {previous.value} → {target.value}",
            extra={
                "application_id": str(application.id),
                "from_status": previous.value,
                "to_status": target.value,
                "applied_at": application.applied_at.isoformat() if application.applied_at else None,
            },
        )
        return application

    async def update_notes(
        self,
        user_id: UUID,
        application_id: Union[str, UUID],
        notes: Optional[str]
    ) -> Application:
        application = await self.get_application(user_id, application_id)

        async with self.transaction():
            application.notes = notes
            application.updated_at = utcnow()
            await self.db.flush()
            await self.audit.record(user_id, "update", "application", application.id, {"field": "notes"})

        await self.db.refresh(application)
        return application

    async def delete_application(self, user_id: UUID, application_id: Union[str, UUID]) -> None:
        """
        Hard delete. The audit entry (which keeps the resource id) is
        written in the same transaction, so neither survives without the other.
        """
        application = await self.get_application(user_id, application_id)

        async with self.transaction():
            await self.audit.record(
                user_id, "delete", "application", application.id,
                {"job_id": application.job_id, "status": application.status},
            )
            await self.db.delete(application)
            await self.db.flush()

        logger.info(f"Deleted application {application.id}")

    async def list_applications(
        self,
        user_id: UUID,
        status: Optional[str] = None,
        country: Optional[str] = None,
        sort: str = "created_at",
        direction: str = "desc",
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> Page[Application]:
        """
        One page of the user's applications. No matches is an empty page.

        Filters:
        - status: pipeline status
        - country: ISO code of the linked job
        Sort keys: created_at, status (saved < applied < interview < offer = rejected)
        """
        limit, offset = page_bounds(limit, offset)
        if sort not in APPLICATION_SORT_KEYS:
            raise ValidationError(
                f"sort must be one of: {', '.join(APPLICATION_SORT_KEYS)}", details={"field": "sort"}
            )
        if direction not in ("asc", "desc"):
            raise ValidationError("direction must be 'asc' or 'desc'", details={"field": "direction"})

        query = select(Application).where(Application.user_id == user_id)
        if status:
            query = query.where(Application.status == parse_status(status).value)
        if country:
            query = query.join(Job, Job.id == Application.job_id).where(
                Job.country == country.strip().upper()
            )

        if sort == "status":
            rank = status_rank_expression(Application.status)
            primary = rank.asc() if direction == "asc" else rank.desc()
        else:
            primary = Application.created_at.asc() if direction == "asc" else Application.created_at.desc()
        tiebreak = Application.created_at.asc() if direction == "asc" else Application.created_at.desc()

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(primary, tiebreak, Application.id).offset(offset).limit(limit)
        )
        return Page(items=list(result.scalars().all()), total=total or 0, limit=limit, offset=offset)
