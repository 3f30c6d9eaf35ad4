"""
Tests for the /api/applications endpoints.

Tests:
- POST /api/applications/ (create; duplicate -> 409)
- PUT /api/applications/{id}/status (any-to-any; bad status -> 422)
- PUT /api/applications/{id}/notes
- GET/DELETE /api/applications/{id} (owner only)
- Audit store outage -> generic 500, nothing persisted
"""
import uuid
import pytest
from fastapi import Depends
from httpx import AsyncClient
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity.api.deps import get_pipeline_service
from opportunity.database import get_db
from opportunity.main import app
from opportunity.models.application import Application
from opportunity.services.audit import AuditTrailWriter
from opportunity.services.pipeline import ApplicationPipelineService


class UnavailableAuditWriter(AuditTrailWriter):
    async def _append(self, entry):
        raise OperationalError("INSERT INTO audit_log", {}, Exception("connection reset"))


def failing_pipeline_service(db: AsyncSession = Depends(get_db)) -> ApplicationPipelineService:
    return ApplicationPipelineService(db, audit=UnavailableAuditWriter(db))


async def _create(client: AsyncClient, job_id) -> dict:
    response = await client.post("/api/applications/", json={"job_id": str(job_id)})
    assert response.status_code == 201
    return response.json()["data"]


# ============================================================
# CREATE
# ============================================================

@pytest.mark.asyncio
async def test_create_application(client: AsyncClient, job):
    data = await _create(client, job.id)

    assert data["status"] == "saved"
    assert data["applied_at"] is None
    assert data["job_id"] == str(job.id)


@pytest.mark.asyncio
async def test_duplicate_application_conflict(client: AsyncClient, job):
    await _create(client, job.id)

    response = await client.post("/api/applications/", json={"job_id": str(job.id)})

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "duplicate_application"


@pytest.mark.asyncio
async def test_create_for_unknown_job(client: AsyncClient):
    response = await client.post("/api/applications/", json={"job_id": str(uuid.uuid4())})

    assert response.status_code == 404


# ============================================================
# STATUS / NOTES
# ============================================================

@pytest.mark.asyncio
async def test_status_flow(client: AsyncClient, job):
    application = await _create(client, job.id)

    applied = (await client.put(f"/api/applications/{application['id']}/status", json={"status": "applied"})).json()["data"]
    assert applied["applied_at"] is not None

    interview = (await client.put(f"/api/applications/{application['id']}/status", json={"status": "interview"})).json()["data"]
    assert interview["status"] == "interview"
    assert interview["applied_at"] == applied["applied_at"]


@pytest.mark.asyncio
async def test_invalid_status(client: AsyncClient, job):
    application = await _create(client, job.id)

    response = await client.put(f"/api/applications/{application['id']}/status", json={"status": "hired"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"
    assert "hired" in response.json()["error"]["message"]


@pytest.mark.asyncio
async def test_update_notes(client: AsyncClient, job):
    application = await _create(client, job.id)

    response = await client.put(f"/api/applications/{application['id']}/notes", json={"notes": "Follow up Monday"})

    assert response.status_code == 200
    assert response.json()["data"]["notes"] == "Follow up Monday"


# ============================================================
# OWNERSHIP
# ============================================================

@pytest.mark.asyncio
async def test_other_users_application_is_forbidden(client: AsyncClient, db, other_user, make_job):
    foreign_job = await make_job(other_user)
    foreign = await ApplicationPipelineService(db).create_application(other_user.id, foreign_job.id)

    for response in (
        await client.get(f"/api/applications/{foreign.id}"),
        await client.put(f"/api/applications/{foreign.id}/status", json={"status": "offer"}),
        await client.delete(f"/api/applications/{foreign.id}"),
    ):
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "forbidden"

    await db.refresh(foreign)
    assert foreign.status == "saved"


@pytest.mark.asyncio
async def test_list_and_delete(client: AsyncClient, job):
    application = await _create(client, job.id)

    listing = (await client.get("/api/applications/", params={"status": "saved"})).json()["data"]
    assert [item["id"] for item in listing["items"]] == [application["id"]]

    response = await client.delete(f"/api/applications/{application['id']}")
    assert response.status_code == 200

    response = await client.get(f"/api/applications/{application['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_rejects_oversized_page(client: AsyncClient):
    response = await client.get("/api/applications/", params={"limit": 500})

    assert response.status_code == 422


# ============================================================
# AUDIT OUTAGE
# ============================================================

@pytest.mark.asyncio
async def test_audit_outage_returns_generic_error(client: AsyncClient, db, job):
    """The audit store is down: the caller sees a generic failure and nothing is saved."""
    app.dependency_overrides[get_pipeline_service] = failing_pipeline_service

    response = await client.post("/api/applications/", json={"job_id": str(job.id)})

    assert response.status_code == 500
    body = response.json()
    assert body["error"]["code"] == "audit_write_failed"
    assert "audit" not in body["error"]["message"].lower()
    assert await db.scalar(select(func.count()).select_from(Application)) == 0


@pytest.mark.asyncio
async def test_audit_outage_keeps_application_on_delete(client: AsyncClient, db, job):
    application = await _create(client, job.id)
    app.dependency_overrides[get_pipeline_service] = failing_pipeline_service

    response = await client.delete(f"/api/applications/{application['id']}")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "audit_write_failed"
    assert await db.scalar(select(func.count()).select_from(Application)) == 1
