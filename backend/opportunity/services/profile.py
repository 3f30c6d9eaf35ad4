"""Profile settings business logic."""
import logging
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import select

from opportunity.database_types import utcnow
from opportunity.exceptions import NotFoundError, ValidationError
from opportunity.models.profile import Profile, SeniorityLevel, RemotePreference
from opportunity.services.base import AuditedService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("preferred_countries", "target_roles", "seniority_level", "remote_preference")


def _enum_value(enum_cls, field: str, value: Any):
    if value is None:
        return None
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Must be one of: {allowed}", details={"field": field})


def _country_codes(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValidationError("preferred_countries must be a list", details={"field": "preferred_countries"})
    codes = []
    for code in value:
        code = str(code).strip().upper()
        if len(code) != 2 or not code.isalpha():
            raise ValidationError(f"'{code}' is not a two-letter country code", details={"field": "preferred_countries"})
        codes.append(code)
    return codes


class ProfileService(AuditedService):
    """Owner-scoped reads and edits of the user's search preferences."""

    async def get_profile(self, user_id: UUID) -> Profile:
        result = await self.db.execute(select(Profile).where(Profile.user_id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError(f"Profile for user {user_id} not found", details={"resource": "profile"})
        return profile

    async def update_profile(self, user_id: UUID, update_data: Dict[str, Any]) -> Profile:
        """Partial update of preference fields; unknown fields are rejected."""
        unknown = set(update_data) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {}
        for field, value in update_data.items():
            if field == "preferred_countries":
                values[field] = _country_codes(value or [])
            elif field == "target_roles":
                values[field] = [str(role).strip() for role in (value or []) if str(role).strip()]
            elif field == "seniority_level":
                values[field] = _enum_value(SeniorityLevel, field, value)
            elif field == "remote_preference":
                values[field] = _enum_value(RemotePreference, field, value)

        profile = await self.get_profile(user_id)
        if not values:
            return profile

        async with self.transaction():
            for field, value in values.items():
                setattr(profile, field, value)
            profile.updated_at = utcnow()
            await self.db.flush()
            await self.audit.record(user_id, "update", "profile", profile.id, {"fields": sorted(values)})

        await self.db.refresh(profile)
        logger.info(f"Profile {profile.id} updated: {', '.join(sorted(values))}")
        return profile
