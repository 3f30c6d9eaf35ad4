"""
Identity provisioning: user mirror sync and first-login profile creation.

ensure_profile is called once per completed OAuth sign-in and is safe to
call concurrently (two tabs finishing the callback at once). The unique
constraint on profiles.user_id is the authoritative guard; losing the race
is treated as success and the winner's row is returned.
"""
import logging
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from opportunity.database_types import utcnow
from opportunity.exceptions import NotFoundError, ProvisioningFailedError
from opportunity.models.profile import Profile
from opportunity.models.user import User
from opportunity.schemas.auth import AuthenticatedUser
from opportunity.services.base import AuditedService

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "User"


def _first_present(metadata: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def derive_display_name(identity: AuthenticatedUser) -> str:
    """full_name, then name, then the email local-part, then "User"."""
    name = _first_present(identity.user_metadata, "full_name", "name")
    if name:
        return name
    if identity.email:
        local_part = identity.email.split("@")[0].strip()
        if local_part:
            return local_part
    return DEFAULT_DISPLAY_NAME


def derive_avatar_url(identity: AuthenticatedUser) -> Optional[str]:
    return _first_present(identity.user_metadata, "avatar_url", "picture")


def derive_linkedin_url(identity: AuthenticatedUser) -> Optional[str]:
    return _first_present(identity.user_metadata, "linkedin_url")


class IdentityProvisioningService(AuditedService):

    async def _find_user(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def _find_profile(self, user_id: UUID) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.user_id == user_id))
        return result.scalar_one_or_none()

    async def sync_user(self, identity: AuthenticatedUser) -> User:
        """
        Create or refresh the local mirror of the provider's user.

        Raises:
            ProvisioningFailedError: If the mirror row cannot be written
        """
        try:
            user = await self._find_user(identity.id)
            if user is None:
                user = User(id=identity.id)
                self.db.add(user)
            user.email = identity.email
            user.user_metadata = dict(identity.user_metadata)
            user.last_sign_in_at = utcnow()
            await self.db.commit()
        except IntegrityError as e:
            # Another request inserted the same provider id first
            await self.db.rollback()
            user = await self._find_user(identity.id)
            if user is None:
                raise ProvisioningFailedError(f"Could not store user {identity.id}", cause=e) from e
            return user
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to sync user {identity.id}: {str(e)}", exc_info=True)
            raise ProvisioningFailedError(f"Could not store user {identity.id}", cause=e) from e

        await self.db.refresh(user)
        return user

    async def ensure_profile(self, identity: AuthenticatedUser) -> Profile:
        """
        Return the user's profile, creating it from provider metadata if absent.

        Idempotent: an existing profile is returned unchanged with no write.

        Raises:
            ProvisioningFailedError: If the insert fails for any reason other
                than a concurrent insert of the same profile
        """
        existing = await self._find_profile(identity.id)
        if existing is not None:
            return existing

        profile = Profile(
            user_id=identity.id,
            full_name=derive_display_name(identity),
            avatar_url=derive_avatar_url(identity),
            linkedin_url=derive_linkedin_url(identity),
            preferred_countries=[],
            target_roles=[],
            seniority_level=None,
            remote_preference=None,
        )
        self.db.add(profile)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            winner = await self._find_profile(identity.id)
            if winner is not None:
                logger.info(f"Profile for user {identity.id} was created concurrently; using existing row")
                return winner
            logger.error(f"Profile insert for user {identity.id} violated a constraint: {str(e)}")
            raise ProvisioningFailedError(f"Could not create profile for user {identity.id}", cause=e) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Profile insert for user {identity.id} failed: {str(e)}", exc_info=True)
            raise ProvisioningFailedError(f"Could not create profile for user {identity.id}", cause=e) from e

        await self.db.refresh(profile)
        logger.info(f"👤 Provisioned profile {profile.id} for user {identity.id}")
        return profile

    async def refresh_profile_from_provider(self, identity: AuthenticatedUser) -> Profile:
        """Re-derive name, avatar and LinkedIn URL from fresh provider metadata."""
        profile = await self._find_profile(identity.id)
        if profile is None:
            raise NotFoundError(f"Profile for user {identity.id} not found", details={"resource": "profile"})

        async with self.transaction():
            profile.full_name = derive_display_name(identity)
            profile.avatar_url = derive_avatar_url(identity)
            profile.linkedin_url = derive_linkedin_url(identity)
            profile.updated_at = utcnow()
            await self.db.flush()
            await self.audit.record(
                identity.id,
                "update",
                "profile",
                profile.id,
                {"source": "identity_provider", "fields": ["full_name", "avatar_url", "linkedin_url"]},
            )

        await self.db.refresh(profile)
        return profile
