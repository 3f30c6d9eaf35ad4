"""
Async database engine, session factory and declarative base.

Sessions are created per request through get_db(); nothing else in the
application holds a session across requests.
"""
import logging
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from opportunity.config import settings

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    connect_args=connect_args,
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """
    SQLite ignores foreign keys unless asked per connection.

    Owner cascades (user -> jobs -> applications/artifacts) and the
    audit_log SET NULL rule depend on them.
    """
    driver = f"{type(dbapi_connection).__module__}.{type(dbapi_connection).__name__}"
    if "sqlite" not in driver.lower():
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    # Looked up at call time so tests can swap the session factory
    async with AsyncSessionLocal() as session:
        yield session
