"""
Profile management endpoints.

Provides endpoints for users to manage their search preferences and to
re-sync display details from the identity provider.
"""
import logging

from fastapi import APIRouter, Depends

from opportunity.api.auth import get_current_user
from opportunity.api.deps import get_profile_service, get_provisioning_service
from opportunity.models.user import User
from opportunity.schemas.auth import AuthenticatedUser
from opportunity.schemas.envelope import Envelope, ok
from opportunity.schemas.profile import ProfileUpdateRequest, ProfileResponse
from opportunity.services.profile import ProfileService
from opportunity.services.provisioning import IdentityProvisioningService

logger = logging.getLogger(__name__)
router = APIRouter()


# Endpoints
@router.get("/profile", response_model=Envelope[ProfileResponse])
async def get_profile(
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Get current user's profile."""
    profile = await service.get_profile(current_user.id)
    return ok(ProfileResponse.model_validate(profile))


@router.put("/profile", response_model=Envelope[ProfileResponse])
async def update_profile(
    profile_data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Update search preferences (partial update)."""
    profile = await service.update_profile(current_user.id, profile_data.model_dump(exclude_unset=True))
    return ok(ProfileResponse.model_validate(profile))


@router.post("/profile/refresh", response_model=Envelope[ProfileResponse])
async def refresh_profile(
    current_user: User = Depends(get_current_user),
    service: IdentityProvisioningService = Depends(get_provisioning_service)
):
    """
    Re-derive name, avatar and LinkedIn URL from the provider metadata
    stored at the last sign-in.
    """
    identity = AuthenticatedUser(
        id=current_user.id,
        email=current_user.email,
        user_metadata=current_user.user_metadata or {},
    )
    profile = await service.refresh_profile_from_provider(identity)
    return ok(ProfileResponse.model_validate(profile))
