"""
Profile endpoints.
"""

from fastapi import APIRouter, HTTPException, status

from deepread.api.deps import CurrentUser, DbSession
from deepread.engines.profile.profile_service import ProfileService
from deepread.schemas.profile import ProfileResponse, ProfileUpdate

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def get_profile(
    user: CurrentUser,
    db: DbSession,
):
    """Get the profile, creating it on first view."""
    profile = await ProfileService(db).ensure_profile()
    return ProfileResponse.model_validate(profile)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    user: CurrentUser,
    db: DbSession,
):
    """Edit the profile. Blank names are rejected."""
    service = ProfileService(db)
    try:
        if data.name is not None:
            await service.update_name(data.name)
        profile = await service.update_preferences(
            has_completed_initial_book_selection=data.has_completed_initial_book_selection,
            last_opened_book_title=data.last_opened_book_title,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    return ProfileResponse.model_validate(profile)
