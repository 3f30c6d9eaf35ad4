import enum
import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index

from opportunity.database import Base
from opportunity.database_types import GUID, utcnow


class ArtifactType(str, enum.Enum):
    CV = "cv"
    COVER_LETTER = "cover_letter"
    MESSAGE = "message"


class Artifact(Base):
    __tablename__ = "artifacts"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Optional: an artifact can exist without a specific job
    job_id = Column(GUID, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=True, index=True)

    type = Column(String(20), nullable=False)  # ArtifactType
    content = Column(Text, nullable=False)
    version = Column(String(20), nullable=False, default="1.0")

    # Generation provenance, supplied by the AI service
    model = Column(String(100), nullable=True)
    prompt_version = Column(String(100), nullable=True)

    # Human-in-the-loop gate: only ArtifactService.approve_artifact sets this
    approved = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_artifacts_user_type", "user_id", "type"),
    )
