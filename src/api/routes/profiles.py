"""Profile API routes."""

from fastapi import APIRouter

from src.api.deps import CurrentUser
from src.api.middleware.error_handler import NotFoundError
from src.schemas.profile import ProfileResponse
from src.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user's profile",
    description="Returns the authenticated user's profile. The profile is created on first sign-in.",
)
async def get_my_profile(user: CurrentUser) -> ProfileResponse:
    """Get the authenticated user's profile.

    Args:
        user: The authenticated user context.

    Returns:
        ProfileResponse: The user's profile data.

    Raises:
        NotFoundError: 404 if the profile disappeared after authentication.
    """
    profile = await ProfileService().get_profile(user.user_id)
    if not profile:
        raise NotFoundError("Profile not found")
    return ProfileResponse(**profile)
