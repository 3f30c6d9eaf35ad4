"""
OAuth identity providers.

The callback route hands the provider's authorization code to
IdentityProvider.exchange_code and gets back the signed-in user's identity.
Which provider is used is selected by settings.identity_provider.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from uuid import UUID

import aiohttp

from opportunity.config import settings
from opportunity.exceptions import AuthenticationError
from opportunity.schemas.auth import AuthenticatedUser

logger = logging.getLogger(__name__)

# Fixed identity for local development without an OAuth app
MOCK_USER_ID = UUID("00000000-0000-4000-8000-000000000001")
MOCK_USER_EMAIL = "user@example.com"
MOCK_USER_NAME = "John Doe"


class IdentityProvider(ABC):

    @abstractmethod
    async def exchange_code(self, code: str) -> AuthenticatedUser:
        """Trade an authorization code for the user's identity."""


class SupabaseIdentityProvider(IdentityProvider):
    """Exchanges PKCE authorization codes against a Supabase auth server."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout_s: Optional[float] = None
    ):
        self.base_url = (base_url if base_url is not None else settings.identity_provider_url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.identity_provider_anon_key
        self.timeout_s = timeout_s if timeout_s is not None else settings.identity_provider_timeout_seconds

    async def exchange_code(self, code: str) -> AuthenticatedUser:
        if not self.base_url or not self.anon_key:
            logger.error("Identity provider is not configured (missing URL or anon key)")
            raise AuthenticationError("Identity provider is not configured", details={"reason": "configuration"})

        url = f"{self.base_url}/auth/v1/token"
        headers = {
            "apikey": self.anon_key,
            "Content-Type": "application/json",
            "User-Agent": "Opportunity/1.0 (auth callback)",
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    url,
                    params={"grant_type": "pkce"},
                    json={"auth_code": code},
                    headers=headers,
                ) as resp:
                    if resp.status != 200:
                        body_text = await resp.text(errors="ignore")
                        logger.warning(f"Code exchange rejected: status={resp.status} body_head={body_text[:200]!r}")
                        raise AuthenticationError(
                            "Authorization code was rejected",
                            details={"reason": "code_rejected", "status": resp.status},
                        )
                    data = await resp.json()
        except asyncio.TimeoutError as e:
            logger.error(f"Code exchange timed out after {self.timeout_s}s")
            raise AuthenticationError(
                "Identity provider did not respond in time", details={"reason": "provider_timeout"}
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"Code exchange failed: {type(e).__name__}: {e}", exc_info=True)
            raise AuthenticationError(
                "Could not reach identity provider", details={"reason": "provider_unreachable"}
            ) from e
        except ValueError as e:
            logger.error(f"Code exchange returned a body that is not JSON: {e}")
            raise AuthenticationError(
                "Identity provider response was not understood", details={"reason": "invalid_response"}
            ) from e

        return self.parse_identity(data)

    @staticmethod
    def parse_identity(data: Dict[str, Any]) -> AuthenticatedUser:
        """Extract the user block from a token response."""
        user = (data or {}).get("user") or {}
        if not user.get("id"):
            raise AuthenticationError("Identity provider response has no user", details={"reason": "invalid_response"})
        return AuthenticatedUser(
            id=user["id"],
            email=user.get("email"),
            user_metadata=user.get("user_metadata") or {},
        )


class MockIdentityProvider(IdentityProvider):
    """Accepts any code and signs in the same local user."""

    async def exchange_code(self, code: str) -> AuthenticatedUser:
        logger.info("🔧 Mock identity provider: signing in development user")
        return AuthenticatedUser(
            id=MOCK_USER_ID,
            email=MOCK_USER_EMAIL,
            user_metadata={"full_name": MOCK_USER_NAME},
        )


def get_identity_provider() -> IdentityProvider:
    if settings.identity_provider == "mock":
        return MockIdentityProvider()
    return SupabaseIdentityProvider()
