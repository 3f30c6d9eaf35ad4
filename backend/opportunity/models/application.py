from enum import Enum
import uuid

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, UniqueConstraint

from opportunity.database import Base
from opportunity.database_types import GUID, utcnow


class PipelineStatus(str, Enum):
    """Valid statuses for applications (and the Job status mirror)"""
    SAVED = "saved"
    APPLIED = "applied"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"


class Application(Base):
    __tablename__ = "applications"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(GUID, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)

    # State machine
    status = Column(String(20), nullable=False, default=PipelineStatus.SAVED.value)

    # Stamped on first entry into "applied", never overwritten
    applied_at = Column(DateTime, nullable=True)

    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        # One pipeline record per (user, job)
        UniqueConstraint("user_id", "job_id", name="uq_applications_user_job"),

        Index("idx_applications_user_status", "user_id", "status"),
        Index("idx_applications_applied_at", "applied_at"),
    )
