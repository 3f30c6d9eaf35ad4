"""
Custom SQLAlchemy types for cross-database compatibility.

PostgreSQL gets native UUID/JSONB columns; SQLite (local dev and tests)
stores UUIDs as CHAR(36) and JSON payloads as TEXT.
"""
from datetime import datetime
import json
import uuid

from sqlalchemy import TypeDecorator, CHAR, Text
from sqlalchemy.dialects.postgresql import UUID, JSONB as PostgreSQLJSONB


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.utcnow()


class GUID(TypeDecorator):
    """
    Platform-independent UUID column.

    Accepts uuid.UUID or its string form on the way in and always hands
    back uuid.UUID, so ownership checks can compare ids directly.
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        if dialect.name == "postgresql":
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class JSON(TypeDecorator):
    """
    Platform-independent JSON column (JSONB on PostgreSQL, TEXT elsewhere).

    Used for list-valued profile preferences and opaque metadata bags.
    """
    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgreSQLJSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name == "postgresql":
            return value
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        if value is None or dialect.name == "postgresql":
            return value
        return json.loads(value)
