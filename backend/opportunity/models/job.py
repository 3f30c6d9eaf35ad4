import enum
import uuid

from sqlalchemy import Column, String, Integer, Float, Text, DateTime, ForeignKey, Index

from opportunity.database import Base
from opportunity.database_types import GUID, utcnow


class RemoteType(str, enum.Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"


class Job(Base):
    __tablename__ = "jobs"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Posting details
    title = Column(String(500), nullable=False)
    company = Column(String(500), nullable=False)
    url = Column(String(2000), nullable=True)
    description = Column(Text, nullable=True)
    country = Column(String(2), nullable=True)  # ISO 3166-1 alpha-2
    location = Column(String(255), nullable=True)
    remote_type = Column(String(20), nullable=True)  # RemoteType

    # Compensation
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")

    # Externally computed fitness score (0-100), null until ranked
    rank_score = Column(Float, nullable=True)

    # User-editable mirror of the pipeline status; never derived from Application
    status = Column(String(20), nullable=False, default="saved")

    # Timestamps
    ingested_at = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_jobs_user_status", "user_id", "status"),
        Index("idx_jobs_user_country", "user_id", "country"),
        Index("idx_jobs_rank_score", "rank_score"),
        Index("idx_jobs_created_at", "created_at"),
    )
