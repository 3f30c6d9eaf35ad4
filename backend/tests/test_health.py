"""
Tests for the health endpoint and routing errors.
"""
import pytest
from httpx import AsyncClient, ASGITransport

from opportunity.api.deps import get_provider
from opportunity.api.errors import GENERIC_FAILURE_MESSAGE
from opportunity.main import app


@pytest.mark.asyncio
async def test_health_check(async_client: AsyncClient):
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "ok", "version": "1.0.0"}


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(async_client: AsyncClient):
    response = await async_client.get("/api/nowhere")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_unexpected_exception_uses_generic_envelope(db):
    """Anything unclassified still renders the envelope without leaking details."""
    def broken_provider():
        raise RuntimeError("provider registry exploded")

    app.dependency_overrides[get_provider] = broken_provider
    # Starlette re-raises after the 500 is sent; keep the response instead
    transport = ASGITransport(app=app, raise_app_exceptions=False)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/auth/callback", params={"code": "abc"})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == {"code": "internal_error", "message": GENERIC_FAILURE_MESSAGE}
    assert "exploded" not in response.text
