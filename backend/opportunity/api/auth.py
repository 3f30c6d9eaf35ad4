"""
Authentication endpoints for OAuth sign-in.

Flow:
1. Frontend sends the user to the identity provider (LinkedIn via Supabase)
2. Provider redirects to /api/auth/callback?code=...&next=...
3. Code is exchanged for an identity, the user mirror is synced and the
   profile is provisioned on first sign-in
4. A signed httpOnly session cookie is set and the browser is redirected

Security features:
- Session cookie is a signed JWT that expires after session_max_age_days
- `next` only accepts same-site relative paths (no open redirect)
"""
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity.api.deps import get_provider, get_provisioning_service
from opportunity.config import settings
from opportunity.database import get_db
from opportunity.exceptions import AuthenticationError, ProvisioningFailedError
from opportunity.models.user import User
from opportunity.schemas.auth import SessionUserResponse
from opportunity.schemas.envelope import Envelope, ok
from opportunity.security import create_session_token, verify_session_token
from opportunity.services.identity import IdentityProvider
from opportunity.services.provisioning import IdentityProvisioningService

logger = logging.getLogger(__name__)
router = APIRouter()

DEFAULT_NEXT_PATH = "/dashboard"


def safe_next_path(next_path: Optional[str]) -> str:
    """Only relative, same-site paths are honoured."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//") or "\\" in next_path:
        return DEFAULT_NEXT_PATH
    return next_path


def _login_redirect(reason: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.get_frontend_url()}/login?error={quote(reason)}",
        status_code=302,
    )


# Authentication Dependencies
async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency to get the signed-in user from the session cookie.

    Raises:
        AuthenticationError: Missing, tampered or expired cookie, or unknown user
    """
    user_id = verify_session_token(request.cookies.get(settings.auth_cookie_name))

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning(f"Session cookie for unknown user {user_id}")
        raise AuthenticationError("Invalid session")
    return user


# Endpoints
@router.get("/callback")
async def oauth_callback(
    code: Optional[str] = None,
    next: Optional[str] = None,
    provider: IdentityProvider = Depends(get_provider),
    provisioning: IdentityProvisioningService = Depends(get_provisioning_service)
):
    """
    OAuth redirect target.

    Returns:
        302 to `next` (default /dashboard) with the session cookie set
        302 to /login?error=... if the exchange or provisioning fails
    """
    if not code:
        return _login_redirect("missing_code")

    try:
        identity = await provider.exchange_code(code)
    except AuthenticationError as e:
        logger.warning(f"OAuth callback rejected: {e.message}")
        return _login_redirect(e.details.get("reason", "auth_failed"))

    try:
        await provisioning.sync_user(identity)
        await provisioning.ensure_profile(identity)
    except ProvisioningFailedError as e:
        logger.error(f"Provisioning failed for user {identity.id}: {e.message}", exc_info=e.cause)
        return _login_redirect("provisioning_failed")

    response = RedirectResponse(
        url=f"{settings.get_frontend_url()}{safe_next_path(next)}",
        status_code=302,
    )
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=create_session_token(identity.id),
        httponly=True,  # Prevents JavaScript access (XSS protection)
        samesite="lax",  # CSRF protection
        max_age=86400 * settings.session_max_age_days,
        secure=not settings.debug,
    )

    logger.info(f"Successful sign-in: {identity.email or identity.id}")
    return response


@router.get("/me", response_model=Envelope[SessionUserResponse])
async def me(current_user: User = Depends(get_current_user)):
    """Return the signed-in user."""
    return ok(SessionUserResponse.model_validate(current_user))


@router.post("/logout", response_model=Envelope[dict])
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user)
):
    """
    Logout user by clearing the authentication cookie.
    """
    response.delete_cookie(
        key=settings.auth_cookie_name,
        httponly=True,
        samesite="lax"
    )

    logger.info(f"User logged out: {current_user.email or current_user.id}")

    return ok({"message": "Successfully logged out"})
