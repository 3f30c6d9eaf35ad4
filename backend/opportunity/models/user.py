from sqlalchemy import Column, String, DateTime

from opportunity.database import Base
from opportunity.database_types import GUID, JSON, utcnow


class User(Base):
    """
    Local mirror of an identity-provider user.

    The provider owns the lifecycle; this row exists so owner-scoped tables
    have a foreign key target with cascade semantics. The id is the
    provider-issued identifier, never generated here.
    """
    __tablename__ = "users"

    id = Column(GUID, primary_key=True)
    email = Column(String(320), nullable=True, index=True)

    # Raw provider metadata: full_name, name, avatar_url, picture, linkedin_url, ...
    user_metadata = Column(JSON, nullable=True, default=dict)

    last_sign_in_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
