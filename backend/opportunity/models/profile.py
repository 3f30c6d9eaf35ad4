import enum
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey

from opportunity.database import Base
from opportunity.database_types import GUID, JSON, utcnow


class SeniorityLevel(str, enum.Enum):
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    PRINCIPAL = "principal"


class RemotePreference(str, enum.Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"
    ANY = "any"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)

    # At most one profile per user; provisioning relies on this constraint
    user_id = Column(
        GUID,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    # Derived from provider metadata on first sign-in
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(1000), nullable=True)
    linkedin_url = Column(String(500), nullable=True)

    # Search preferences
    preferred_countries = Column(JSON, nullable=False, default=list)  # ISO codes, e.g. ["US", "GB"]
    target_roles = Column(JSON, nullable=False, default=list)
    seniority_level = Column(String(20), nullable=True)  # SeniorityLevel
    remote_preference = Column(String(20), nullable=True)  # RemotePreference

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
