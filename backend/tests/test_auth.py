"""
Tests for OAuth sign-in, session cookies and logout.

Security tests:
- Tampered, expired and unknown-user session tokens are rejected
- `next` cannot redirect off-site
- Provider failures and provisioning failures land on /login?error=...
"""
import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from httpx import AsyncClient
from sqlalchemy import select, func

from opportunity.api.deps import get_provider
from opportunity.config import settings
from opportunity.exceptions import AuthenticationError
from opportunity.main import app
from opportunity.models.profile import Profile
from opportunity.models.user import User
from opportunity.schemas.auth import AuthenticatedUser
from opportunity.security import create_session_token, verify_session_token
from opportunity.services.identity import IdentityProvider, MockIdentityProvider, SupabaseIdentityProvider


SIGNED_IN = AuthenticatedUser(
    id=uuid.UUID("6f1c2a3e-8d4b-4c5a-9e7f-0a1b2c3d4e5f"),
    email="ada@example.com",
    user_metadata={"full_name": "Ada Lovelace", "avatar_url": "https://img.example.com/ada.png"},
)


class FakeProvider(IdentityProvider):
    def __init__(self, identity=SIGNED_IN, error=None):
        self.identity = identity
        self.error = error
        self.codes = []

    async def exchange_code(self, code: str) -> AuthenticatedUser:
        self.codes.append(code)
        if self.error:
            raise self.error
        return self.identity


def _use_provider(provider: IdentityProvider) -> None:
    app.dependency_overrides[get_provider] = lambda: provider


# ============================================================
# Session tokens
# ============================================================

def test_session_token_round_trip():
    user_id = uuid.uuid4()
    token = create_session_token(user_id)

    claims = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    assert claims["sub"] == str(user_id)
    assert claims["exp"] - claims["iat"] == settings.session_max_age_days * 86400
    assert verify_session_token(token) == user_id


def test_tampered_token_rejected():
    forged = create_session_token(uuid.uuid4(), secret_key="not-the-server-key")

    with pytest.raises(AuthenticationError):
        verify_session_token(forged)


def test_expired_token_rejected():
    long_ago = datetime.now(timezone.utc) - timedelta(days=settings.session_max_age_days + 1)
    token = create_session_token(uuid.uuid4(), issued_at=long_ago)

    with pytest.raises(AuthenticationError, match="expired"):
        verify_session_token(token)


def test_token_without_subject_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode({"iat": now, "exp": now + timedelta(hours=1)}, settings.secret_key, algorithm="HS256")

    with pytest.raises(AuthenticationError):
        verify_session_token(token)


def test_token_with_non_uuid_subject_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "not-a-uuid", "iat": now, "exp": now + timedelta(hours=1)},
        settings.secret_key,
        algorithm="HS256",
    )

    with pytest.raises(AuthenticationError):
        verify_session_token(token)


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b", "a.b.c.d"])
def test_malformed_token_rejected(token):
    with pytest.raises(AuthenticationError):
        verify_session_token(token)


# ============================================================
# Providers
# ============================================================

@pytest.mark.asyncio
async def test_mock_provider_returns_fixed_user():
    identity = await MockIdentityProvider().exchange_code("anything")

    assert identity.email == "user@example.com"
    assert identity.user_metadata["full_name"] == "John Doe"


def test_supabase_response_parsing():
    identity = SupabaseIdentityProvider.parse_identity({
        "access_token": "x",
        "user": {"id": str(SIGNED_IN.id), "email": "ada@example.com", "user_metadata": {"name": "Ada"}},
    })

    assert identity.id == SIGNED_IN.id
    assert identity.user_metadata == {"name": "Ada"}


def test_supabase_response_without_user_rejected():
    with pytest.raises(AuthenticationError):
        SupabaseIdentityProvider.parse_identity({"error": "invalid_grant"})


@pytest.mark.asyncio
async def test_unconfigured_supabase_provider_rejects():
    with pytest.raises(AuthenticationError) as exc_info:
        await SupabaseIdentityProvider(base_url="", anon_key="").exchange_code("code")

    assert exc_info.value.details["reason"] == "configuration"


@pytest.mark.asyncio
async def test_slow_supabase_provider_times_out():
    async def slow_token(request):
        await asyncio.sleep(0.5)
        return web.json_response({})

    token_app = web.Application()
    token_app.router.add_post("/auth/v1/token", slow_token)

    async with TestServer(token_app) as server:
        provider = SupabaseIdentityProvider(base_url=str(server.make_url("")), anon_key="anon", timeout_s=0.05)
        with pytest.raises(AuthenticationError) as exc_info:
            await provider.exchange_code("code")

    assert exc_info.value.details["reason"] == "provider_timeout"


@pytest.mark.asyncio
async def test_supabase_provider_rejected_code():
    async def reject(request):
        assert request.query["grant_type"] == "pkce"
        assert request.headers["apikey"] == "anon"
        return web.json_response({"error": "invalid_grant"}, status=400)

    token_app = web.Application()
    token_app.router.add_post("/auth/v1/token", reject)

    async with TestServer(token_app) as server:
        provider = SupabaseIdentityProvider(base_url=str(server.make_url("")), anon_key="anon", timeout_s=5)
        with pytest.raises(AuthenticationError) as exc_info:
            await provider.exchange_code("code")

    assert exc_info.value.details == {"reason": "code_rejected", "status": 400}


# ============================================================
# Callback
# ============================================================

@pytest.mark.asyncio
async def test_callback_provisions_and_sets_cookie(async_client: AsyncClient, db):
    provider = FakeProvider()
    _use_provider(provider)

    response = await async_client.get("/api/auth/callback", params={"code": "abc", "next": "/jobs"})

    assert response.status_code == 302
    assert response.headers["location"] == f"{settings.get_frontend_url()}/jobs"
    assert f"{settings.auth_cookie_name}=" in response.headers["set-cookie"]
    assert "httponly" in response.headers["set-cookie"].lower()
    assert provider.codes == ["abc"]

    user = await db.get(User, SIGNED_IN.id)
    assert user.email == "ada@example.com"
    profile = (await db.execute(select(Profile).where(Profile.user_id == SIGNED_IN.id))).scalar_one()
    assert profile.full_name == "Ada Lovelace"


@pytest.mark.asyncio
async def test_repeat_sign_in_keeps_single_profile(async_client: AsyncClient, db):
    _use_provider(FakeProvider())

    for _ in range(3):
        response = await async_client.get("/api/auth/callback", params={"code": "abc"})
        assert response.status_code == 302

    count = await db.scalar(select(func.count()).select_from(Profile).where(Profile.user_id == SIGNED_IN.id))
    assert count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("next_path", [None, "https://evil.example.com", "//evil.example.com", "dashboard"])
async def test_callback_rejects_offsite_next(async_client: AsyncClient, next_path):
    _use_provider(FakeProvider())
    params = {"code": "abc"}
    if next_path is not None:
        params["next"] = next_path

    response = await async_client.get("/api/auth/callback", params=params)

    assert response.headers["location"] == f"{settings.get_frontend_url()}/dashboard"


@pytest.mark.asyncio
async def test_callback_without_code(async_client: AsyncClient):
    response = await async_client.get("/api/auth/callback")

    assert response.status_code == 302
    assert response.headers["location"].endswith("/login?error=missing_code")


@pytest.mark.asyncio
async def test_callback_provider_error(async_client: AsyncClient, db):
    _use_provider(FakeProvider(error=AuthenticationError(
        "Authorization code was rejected", details={"reason": "code_rejected", "status": 400}
    )))

    response = await async_client.get("/api/auth/callback", params={"code": "expired"})

    assert response.status_code == 302
    assert response.headers["location"].endswith("/login?error=code_rejected")
    assert "set-cookie" not in response.headers
    assert await db.scalar(select(func.count()).select_from(User)) == 0


class SlowProvider(SupabaseIdentityProvider):
    """Talks to a token endpoint that never answers within the timeout."""

    async def exchange_code(self, code: str) -> AuthenticatedUser:
        async def stalled(request):
            await asyncio.sleep(0.5)
            return web.json_response({})

        token_app = web.Application()
        token_app.router.add_post("/auth/v1/token", stalled)
        async with TestServer(token_app) as server:
            self.base_url = str(server.make_url("")).rstrip("/")
            return await super().exchange_code(code)


@pytest.mark.asyncio
async def test_callback_provider_timeout_redirects_to_login(async_client: AsyncClient, db):
    _use_provider(SlowProvider(base_url="http://placeholder", anon_key="anon", timeout_s=0.05))

    response = await async_client.get("/api/auth/callback", params={"code": "abc"})

    assert response.status_code == 302
    assert response.headers["location"].endswith("/login?error=provider_timeout")
    assert await db.scalar(select(func.count()).select_from(User)) == 0


@pytest.mark.asyncio
async def test_callback_unconfigured_provider_uses_reason_code(async_client: AsyncClient):
    _use_provider(SupabaseIdentityProvider(base_url="", anon_key=""))

    response = await async_client.get("/api/auth/callback", params={"code": "abc"})

    assert response.status_code == 302
    assert response.headers["location"] == f"{settings.get_frontend_url()}/login?error=configuration"


# ============================================================
# Session endpoints
# ============================================================

@pytest.mark.asyncio
async def test_me_returns_signed_in_user(client: AsyncClient, test_user):
    response = await client.get("/api/auth/me")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["id"] == str(test_user.id)
    assert body["data"]["email"] == test_user.email


@pytest.mark.asyncio
async def test_me_rejects_unknown_user(async_client: AsyncClient):
    async_client.cookies.set(settings.auth_cookie_name, create_session_token(uuid.uuid4()))

    response = await async_client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "not_authenticated"


@pytest.mark.asyncio
async def test_logout_clears_cookie(client: AsyncClient):
    response = await client.post("/api/auth/logout")

    assert response.status_code == 200
    assert "max-age=0" in response.headers["set-cookie"].lower()
