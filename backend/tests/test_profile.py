"""
Tests for profile settings (service and endpoints).

Tests:
- GET /api/profile (retrieve profile)
- PUT /api/profile (partial update of search preferences)
- POST /api/profile/refresh (re-sync display details)
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import select

from opportunity.exceptions import NotFoundError, ValidationError
from opportunity.models.audit_log import AuditLogEntry
from opportunity.models.user import User
from opportunity.services.profile import ProfileService
from opportunity.services.provisioning import IdentityProvisioningService


@pytest_asyncio.fixture
async def profile(db, identity):
    return await IdentityProvisioningService(db).ensure_profile(identity)


# ============================================================
# Service
# ============================================================

@pytest.mark.asyncio
async def test_update_preferences(db, test_user, profile):
    updated = await ProfileService(db).update_profile(test_user.id, {
        "preferred_countries": ["us", " gb "],
        "target_roles": ["Backend Engineer", "  ", "SRE"],
        "seniority_level": "senior",
        "remote_preference": "remote",
    })

    assert updated.preferred_countries == ["US", "GB"]
    assert updated.target_roles == ["Backend Engineer", "SRE"]
    assert updated.seniority_level == "senior"
    assert updated.remote_preference == "remote"

    entry = (await db.execute(select(AuditLogEntry))).scalars().one()
    assert entry.action == "update"
    assert entry.resource == "profile"
    assert entry.details["fields"] == ["preferred_countries", "remote_preference", "seniority_level", "target_roles"]


@pytest.mark.asyncio
@pytest.mark.parametrize("changes", [
    {"seniority_level": "wizard"},
    {"remote_preference": "moon"},
    {"preferred_countries": ["United States"]},
    {"full_name": "Not editable here"},
])
async def test_update_rejects_invalid_preferences(db, test_user, profile, changes):
    with pytest.raises(ValidationError):
        await ProfileService(db).update_profile(test_user.id, changes)


@pytest.mark.asyncio
async def test_empty_update_writes_nothing(db, test_user, profile):
    await ProfileService(db).update_profile(test_user.id, {})

    assert (await db.execute(select(AuditLogEntry))).scalars().all() == []


@pytest.mark.asyncio
async def test_missing_profile_is_not_found(db, test_user):
    with pytest.raises(NotFoundError):
        await ProfileService(db).get_profile(test_user.id)


# ============================================================
# Endpoints
# ============================================================

@pytest.mark.asyncio
async def test_get_profile(client: AsyncClient, profile):
    response = await client.get("/api/profile")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["full_name"] == "Test User"
    assert data["preferred_countries"] == []


@pytest.mark.asyncio
async def test_put_profile_partial_update(client: AsyncClient, profile):
    response = await client.put("/api/profile", json={"target_roles": ["Data Engineer"]})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["target_roles"] == ["Data Engineer"]
    assert data["seniority_level"] is None


@pytest.mark.asyncio
async def test_put_profile_invalid_enum(client: AsyncClient, profile):
    response = await client.put("/api/profile", json={"seniority_level": "wizard"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


@pytest.mark.asyncio
async def test_refresh_profile_uses_stored_metadata(client: AsyncClient, db, test_user, profile):
    user = await db.get(User, test_user.id)
    user.user_metadata = {"full_name": "Updated Name", "picture": "https://img.example.com/p.png"}
    await db.commit()

    response = await client.post("/api/profile/refresh")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["full_name"] == "Updated Name"
    assert data["avatar_url"] == "https://img.example.com/p.png"
