"""Database models"""
from opportunity.models.user import User
from opportunity.models.profile import Profile, SeniorityLevel, RemotePreference
from opportunity.models.job import Job, RemoteType
from opportunity.models.application import Application, PipelineStatus
from opportunity.models.artifact import Artifact, ArtifactType
from opportunity.models.audit_log import AuditLogEntry

__all__ = [
    "User",
    "Profile",
    "SeniorityLevel",
    "RemotePreference",
    "Job",
    "RemoteType",
    "Application",
    "PipelineStatus",
    "Artifact",
    "ArtifactType",
    "AuditLogEntry",
]
