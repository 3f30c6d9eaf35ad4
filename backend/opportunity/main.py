"""
Opportunity API application.

Wires settings-driven logging, CORS for the dashboard origin, the
envelope exception handlers and the /api routers. Run with:

    uvicorn opportunity.main:app --reload
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from opportunity import database
from opportunity.config import settings
from opportunity.api import auth, profile, jobs, applications, artifacts, audit
from opportunity.api.errors import register_exception_handlers

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    On startup: log configuration (schema is managed by Alembic)
    On shutdown: close database connections gracefully
    """
    logger.info("🚀 Starting Opportunity API...")
    logger.info(f"📊 Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'configured'}")
    logger.info(f"🔑 Identity provider: {settings.identity_provider}")
    logger.info(f"🔧 Debug mode: {settings.debug}")

    yield

    logger.info("👋 Shutting down Opportunity API...")
    await database.engine.dispose()


app = FastAPI(
    title="Opportunity API",
    description="Job search backend: profiles, jobs, application pipeline, artifacts and audit trail",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Set ALLOWED_ORIGINS environment variable with comma-separated domains
allowed_origins = [settings.get_frontend_url()]
allowed_origins.extend(origin for origin in settings.allowed_origin_list if origin not in allowed_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/health")
async def health_check():
    """Liveness plus a database round trip."""
    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check database ping failed: {str(e)}")
        db_status = "unavailable"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "database": db_status,
        "version": app.version,
    }


# Register API routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(profile.router, prefix="/api", tags=["profile"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(artifacts.router, prefix="/api/artifacts", tags=["artifacts"])
app.include_router(audit.router, prefix="/api/audit", tags=["audit"])
