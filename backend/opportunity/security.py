"""
Signed session tokens for the auth cookie.

Tokens are HS256 JWTs keyed by settings.secret_key carrying the user id in
`sub` and expiring session_max_age_days after `iat`.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt

from opportunity.config import settings
from opportunity.exceptions import AuthenticationError

ALGORITHM = "HS256"


def create_session_token(
    user_id: UUID,
    issued_at: Optional[datetime] = None,
    secret_key: Optional[str] = None
) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.session_max_age_days),
    }
    return jwt.encode(payload, secret_key or settings.secret_key, algorithm=ALGORITHM)


def verify_session_token(token: Optional[str], secret_key: Optional[str] = None) -> UUID:
    """
    Return the user id carried by a valid token.

    Raises:
        AuthenticationError: Missing, malformed, tampered or expired token
    """
    if not token:
        raise AuthenticationError("Not signed in")

    try:
        payload = jwt.decode(
            token,
            secret_key or settings.secret_key,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired")
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid session")

    try:
        return UUID(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid session")
