"""
Request-scoped service factories.

Each request gets fresh service instances bound to its own session. Tests
swap any of these through app.dependency_overrides.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity.database import get_db
from opportunity.services.artifacts import ArtifactService
from opportunity.services.audit import AuditLogReader
from opportunity.services.identity import IdentityProvider, get_identity_provider
from opportunity.services.jobs import JobService
from opportunity.services.pipeline import ApplicationPipelineService
from opportunity.services.profile import ProfileService
from opportunity.services.provisioning import IdentityProvisioningService


def get_provisioning_service(db: AsyncSession = Depends(get_db)) -> IdentityProvisioningService:
    return IdentityProvisioningService(db)


def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_job_service(db: AsyncSession = Depends(get_db)) -> JobService:
    return JobService(db)


def get_pipeline_service(db: AsyncSession = Depends(get_db)) -> ApplicationPipelineService:
    return ApplicationPipelineService(db)


def get_artifact_service(db: AsyncSession = Depends(get_db)) -> ArtifactService:
    return ArtifactService(db)


def get_audit_reader(db: AsyncSession = Depends(get_db)) -> AuditLogReader:
    return AuditLogReader(db)


def get_provider() -> IdentityProvider:
    return get_identity_provider()
