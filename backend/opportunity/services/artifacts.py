"""
Artifact store: generated CVs, cover letters and outreach messages.

Artifacts are created unapproved. approve_artifact is the only code path
that sets approved=True; nothing is ever sent on the user's behalf
without it.
"""
import logging
from typing import Any, Dict, Optional, Union
from uuid import UUID

from sqlalchemy import select, func

from opportunity.database_types import utcnow
from opportunity.exceptions import ValidationError
from opportunity.models.artifact import Artifact, ArtifactType
from opportunity.models.job import Job
from opportunity.services.base import AuditedService, Page, as_uuid, ensure_owner, page_bounds

logger = logging.getLogger(__name__)


def parse_artifact_type(value: Union[str, ArtifactType]) -> ArtifactType:
    try:
        return ArtifactType(value)
    except ValueError:
        allowed = ", ".join(member.value for member in ArtifactType)
        raise ValidationError(f"Invalid artifact type '{value}'. Must be one of: {allowed}", details={"field": "type"})


def next_version(version: str) -> str:
    """"1.0" -> "2.0", "3" -> "4.0"."""
    try:
        major = int(str(version).split(".")[0])
    except ValueError:
        raise ValidationError(f"Cannot derive next version from '{version}'", details={"field": "version"})
    return f"{major + 1}.0"


class ArtifactService(AuditedService):

    async def get_artifact(self, user_id: UUID, artifact_id: Union[str, UUID]) -> Artifact:
        artifact_id = as_uuid(artifact_id, "artifact_id")
        artifact = await self.db.get(Artifact, artifact_id)
        return ensure_owner(artifact, user_id, "Artifact", artifact_id)

    async def create_artifact(self, user_id: UUID, values: Dict[str, Any]) -> Artifact:
        """
        Store generated content. Any `approved` value in the input is ignored.

        Audit action is generate_<type>, e.g. generate_cover_letter.
        """
        content = (values.get("content") or "").strip()
        if not content:
            raise ValidationError("content is required", details={"field": "content"})
        artifact_type = parse_artifact_type(values.get("type"))

        job_id = values.get("job_id")
        if job_id is not None:
            job_id = as_uuid(job_id, "job_id")
            job = await self.db.get(Job, job_id)
            ensure_owner(job, user_id, "Job", job_id)

        artifact = Artifact(
            user_id=user_id,
            job_id=job_id,
            type=artifact_type.value,
            content=content,
            version=values.get("version") or "1.0",
            model=values.get("model"),
            prompt_version=values.get("prompt_version"),
            approved=False,
        )

        async with self.transaction():
            self.db.add(artifact)
            await self.db.flush()
            await self.audit.record(
                user_id, f"generate_{artifact_type.value}", "artifact", artifact.id,
                {"job_id": job_id, "version": artifact.version, "model": artifact.model},
            )

        await self.db.refresh(artifact)
        logger.info(f"📝 Generated {artifact_type.value} artifact {artifact.id} (v{artifact.version})")
        return artifact

    async def approve_artifact(self, user_id: UUID, artifact_id: Union[str, UUID]) -> Artifact:
        """Mark an artifact as approved by its owner. Re-approving is a no-op."""
        artifact = await self.get_artifact(user_id, artifact_id)
        if artifact.approved:
            return artifact

        async with self.transaction():
            artifact.approved = True
            artifact.updated_at = utcnow()
            await self.db.flush()
            await self.audit.record(
                user_id, "approve", "artifact", artifact.id,
                {"type": artifact.type, "version": artifact.version},
            )

        await self.db.refresh(artifact)
        logger.info(f"✅ Artifact {artifact.id} approved by user {user_id}")
        return artifact

    async def regenerate_artifact(
        self,
        user_id: UUID,
        artifact_id: Union[str, UUID],
        content: str,
        model: Optional[str] = None,
        prompt_version: Optional[str] = None
    ) -> Artifact:
        """
        Store new content as the next major version. The previous version is
        kept as-is; the new one always needs its own approval.
        """
        source = await self.get_artifact(user_id, artifact_id)
        content = (content or "").strip()
        if not content:
            raise ValidationError("content is required", details={"field": "content"})

        artifact = Artifact(
            user_id=user_id,
            job_id=source.job_id,
            type=source.type,
            content=content,
            version=next_version(source.version),
            model=model or source.model,
            prompt_version=prompt_version or source.prompt_version,
            approved=False,
        )

        async with self.transaction():
            self.db.add(artifact)
            await self.db.flush()
            await self.audit.record(
                user_id, f"generate_{source.type}", "artifact", artifact.id,
                {"job_id": source.job_id, "version": artifact.version, "previous_id": source.id},
            )

        await self.db.refresh(artifact)
        logger.info(f"Regenerated artifact {source.id} as {artifact.id} (v{artifact.version})")
        return artifact

    async def delete_artifact(self, user_id: UUID, artifact_id: Union[str, UUID]) -> None:
        artifact = await self.get_artifact(user_id, artifact_id)

        async with self.transaction():
            await self.audit.record(
                user_id, "delete", "artifact", artifact.id,
                {"type": artifact.type, "version": artifact.version},
            )
            await self.db.delete(artifact)
            await self.db.flush()

    async def list_artifacts(
        self,
        user_id: UUID,
        job_id: Optional[Union[str, UUID]] = None,
        artifact_type: Optional[str] = None,
        approved: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> Page[Artifact]:
        limit, offset = page_bounds(limit, offset)

        filters = [Artifact.user_id == user_id]
        if job_id is not None:
            filters.append(Artifact.job_id == as_uuid(job_id, "job_id"))
        if artifact_type:
            filters.append(Artifact.type == parse_artifact_type(artifact_type).value)
        if approved is not None:
            filters.append(Artifact.approved == approved)

        total = await self.db.scalar(select(func.count()).select_from(Artifact).where(*filters))
        result = await self.db.execute(
            select(Artifact)
            .where(*filters)
            .order_by(Artifact.created_at.desc(), Artifact.id)
            .offset(offset)
            .limit(limit)
        )
        return Page(items=list(result.scalars().all()), total=total or 0, limit=limit, offset=offset)
