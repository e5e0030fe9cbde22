"""Reader profile routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.schemas import ProfileResponse, ProfileUpdateRequest
from app.core.dependencies import get_current_user, get_profile_service
from app.domain.entities import UserProfile
from app.domain.services import IProfileService

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> ProfileResponse:
    return ProfileResponse.model_validate(current_user)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    profile_service: Annotated[IProfileService, Depends(get_profile_service)],
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> ProfileResponse:
    profile = await profile_service.update_display_name(current_user, body.display_name)
    return ProfileResponse.model_validate(profile)
