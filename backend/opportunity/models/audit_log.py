import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Index

from opportunity.database import Base
from opportunity.database_types import GUID, JSON, utcnow


class AuditLogEntry(Base):
    """
    Append-only record of a mutating action.

    Written only through services.audit.AuditTrailWriter. Entries outlive
    the acting user (user_id is nulled on user deletion) and the resource
    they describe (resource_id is not a foreign key).
    """
    __tablename__ = "audit_log"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    action = Column(String(100), nullable=False, index=True)  # create | update | delete | generate_cv | ...
    resource = Column(String(100), nullable=False)  # job | application | artifact | profile
    resource_id = Column(GUID, nullable=True)

    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_log_resource", "resource", "resource_id"),
        Index("idx_audit_log_user_created", "user_id", "created_at"),
    )
