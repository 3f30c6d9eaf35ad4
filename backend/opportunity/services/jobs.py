"""
Job store: owner-scoped capture, edit, listing and deletion of job postings.

Deleting a job removes its applications and artifacts through the
ON DELETE CASCADE foreign keys.
"""
import logging
from typing import Any, Dict, Iterable, Optional, Union
from uuid import UUID

from sqlalchemy import select, func

from opportunity.config import settings
from opportunity.database_types import utcnow
from opportunity.exceptions import ValidationError
from opportunity.models.job import Job, RemoteType
from opportunity.services.base import AuditedService, Page, as_uuid, ensure_owner, page_bounds
from opportunity.services.state_machine import parse_status

logger = logging.getLogger(__name__)

JOB_FIELDS = (
    "title", "company", "url", "description", "country", "location", "remote_type",
    "salary_min", "salary_max", "currency", "rank_score", "status",
)
JOB_SORT_KEYS = ("created_at", "rank_score")


def normalize_job_fields(values: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and canonicalize job fields (only those present)."""
    unknown = set(values) - set(JOB_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown job fields: {', '.join(sorted(unknown))}")

    clean = dict(values)
    for field in ("title", "company"):
        if field in clean:
            text = (clean[field] or "").strip()
            if not text:
                raise ValidationError(f"{field} is required", details={"field": field})
            clean[field] = text

    if clean.get("country") is not None:
        country = str(clean["country"]).strip().upper()
        if len(country) != 2 or not country.isalpha():
            raise ValidationError(f"'{country}' is not a two-letter country code", details={"field": "country"})
        clean["country"] = country

    for field in ("currency", "status"):
        if field in clean and clean[field] is None:
            raise ValidationError(f"{field} cannot be null", details={"field": field})

    if clean.get("currency") is not None:
        currency = str(clean["currency"]).strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError(f"'{currency}' is not a currency code", details={"field": "currency"})
        clean["currency"] = currency

    if clean.get("remote_type") is not None:
        try:
            clean["remote_type"] = RemoteType(clean["remote_type"]).value
        except ValueError:
            raise ValidationError(
                f"Invalid remote_type '{clean['remote_type']}'", details={"field": "remote_type"}
            )

    if clean.get("rank_score") is not None:
        score = float(clean["rank_score"])
        if score < 0 or score > 100:
            raise ValidationError("rank_score must be between 0 and 100", details={"field": "rank_score"})
        clean["rank_score"] = score

    for field in ("salary_min", "salary_max"):
        if clean.get(field) is not None and int(clean[field]) < 0:
            raise ValidationError(f"{field} must not be negative", details={"field": field})

    if "status" in clean:
        clean["status"] = parse_status(clean["status"]).value

    return clean


def _check_salary_range(salary_min: Optional[int], salary_max: Optional[int]) -> None:
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise ValidationError("salary_min must not exceed salary_max", details={"field": "salary_min"})


class JobService(AuditedService):

    async def get_job(self, user_id: UUID, job_id: Union[str, UUID]) -> Job:
        job_id = as_uuid(job_id, "job_id")
        job = await self.db.get(Job, job_id)
        return ensure_owner(job, user_id, "Job", job_id)

    def _build_job(self, user_id: UUID, values: Dict[str, Any]) -> Job:
        clean = normalize_job_fields(values)
        for field in ("title", "company"):
            if field not in clean:
                raise ValidationError(f"{field} is required", details={"field": field})
        _check_salary_range(clean.get("salary_min"), clean.get("salary_max"))
        clean.setdefault("currency", "USD")
        clean.setdefault("status", "saved")
        return Job(user_id=user_id, ingested_at=utcnow(), **clean)

    async def create_job(self, user_id: UUID, values: Dict[str, Any]) -> Job:
        job = self._build_job(user_id, values)

        async with self.transaction():
            self.db.add(job)
            await self.db.flush()
            await self.audit.record(user_id, "create", "job", job.id, {"title": job.title, "company": job.company})

        await self.db.refresh(job)
        logger.info(f"Created job {job.id}: {job.title} at {job.company}")
        return job

    async def import_jobs(self, user_id: UUID, items: Iterable[Dict[str, Any]]) -> list[Job]:
        """
        Bulk capture. All-or-nothing: one invalid item rejects the batch.
        """
        items = list(items)
        if not items:
            raise ValidationError("Nothing to import")
        if len(items) > settings.max_import_batch:
            raise ValidationError(
                f"Cannot import more than {settings.max_import_batch} jobs at once",
                details={"count": len(items)},
            )

        jobs = [self._build_job(user_id, values) for values in items]

        async with self.transaction():
            self.db.add_all(jobs)
            await self.db.flush()
            for job in jobs:
                await self.audit.record(
                    user_id, "create", "job", job.id,
                    {"title": job.title, "company": job.company, "source": "import"},
                )

        for job in jobs:
            await self.db.refresh(job)
        logger.info(f"Imported {len(jobs)} jobs for user {user_id}")
        return jobs

    async def update_job(self, user_id: UUID, job_id: Union[str, UUID], changes: Dict[str, Any]) -> Job:
        clean = normalize_job_fields(changes)
        job = await self.get_job(user_id, job_id)
        if not clean:
            return job

        _check_salary_range(
            clean.get("salary_min", job.salary_min),
            clean.get("salary_max", job.salary_max),
        )

        async with self.transaction():
            previous_status = job.status
            for field, value in clean.items():
                setattr(job, field, value)
            job.updated_at = utcnow()
            await self.db.flush()

            metadata: Dict[str, Any] = {"fields": sorted(clean)}
            if "status" in clean:
                metadata["old_status"] = previous_status
                metadata["new_status"] = job.status
            await self.audit.record(user_id, "update", "job", job.id, metadata)

        await self.db.refresh(job)
        logger.info(f"Updated job {job.id}: {', '.join(sorted(clean))}")
        return job

    async def delete_job(self, user_id: UUID, job_id: Union[str, UUID]) -> None:
        job = await self.get_job(user_id, job_id)

        async with self.transaction():
            await self.audit.record(user_id, "delete", "job", job.id, {"title": job.title, "company": job.company})
            await self.db.delete(job)
            await self.db.flush()

        logger.info(f"Deleted job {job.id} (applications and artifacts cascade)")

    async def list_jobs(
        self,
        user_id: UUID,
        status: Optional[str] = None,
        country: Optional[str] = None,
        remote_type: Optional[str] = None,
        sort: str = "created_at",
        direction: str = "desc",
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> Page[Job]:
        limit, offset = page_bounds(limit, offset)
        if sort not in JOB_SORT_KEYS:
            raise ValidationError(f"sort must be one of: {', '.join(JOB_SORT_KEYS)}", details={"field": "sort"})
        if direction not in ("asc", "desc"):
            raise ValidationError("direction must be 'asc' or 'desc'", details={"field": "direction"})

        filters = [Job.user_id == user_id]
        if status:
            filters.append(Job.status == parse_status(status).value)
        if country:
            filters.append(Job.country == country.strip().upper())
        if remote_type:
            filters.append(Job.remote_type == normalize_job_fields({"remote_type": remote_type})["remote_type"])

        if sort == "rank_score":
            # Unranked jobs always sort last
            primary = Job.rank_score.asc() if direction == "asc" else Job.rank_score.desc()
            order_by = [Job.rank_score.is_(None), primary, Job.created_at.desc()]
        else:
            order_by = [Job.created_at.asc() if direction == "asc" else Job.created_at.desc()]

        total = await self.db.scalar(select(func.count()).select_from(Job).where(*filters))
        result = await self.db.execute(
            select(Job).where(*filters).order_by(*order_by).offset(offset).limit(limit)
        )
        return Page(items=list(result.scalars().all()), total=total or 0, limit=limit, offset=offset)
