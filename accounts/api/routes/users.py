"""User profile API routes."""

from fastapi import APIRouter

from accounts.api.deps import CurrentUser, OptionalUser, PatchService, Reader
from accounts.api.middleware.error_handler import NotFoundError
from accounts.schemas.common import MessageResponse
from accounts.schemas.profile import Profile, UserPatch

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/{vanity}",
    response_model=Profile,
    response_model_exclude_none=True,
    summary="Get a profile",
    description="Returns a user or bot profile. Email and birthdate are only included for the owner.",
)
async def get_user(vanity: str, reader: Reader, user: OptionalUser) -> Profile:
    """Get a profile by vanity.

    Raises:
        NotFoundError: 404 if no user or bot has this vanity.
    """
    profile = await reader.get_profile(vanity, requester=user.vanity if user else None)

    if profile.is_empty:
        raise NotFoundError()

    return profile


@router.patch(
    "/{vanity}",
    response_model=MessageResponse,
    summary="Update a profile",
    description="Partially updates the authenticated user's own profile.",
)
async def patch_user(
    vanity: str,
    data: UserPatch,
    user: CurrentUser,
    service: PatchService,
) -> MessageResponse:
    await service.patch_profile(vanity, current_requester=user.vanity, patch=data)
    return MessageResponse()
