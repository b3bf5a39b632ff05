"""
Streak endpoints.
"""

from fastapi import APIRouter

from deepread.api.deps import CurrentUser, DbSession
from deepread.engines.streak.streak_manager import StreakManager
from deepread.schemas.streak import ActivityRequest, ActivityResponse, StreakResponse

router = APIRouter()


async def _streak_response(manager: StreakManager) -> StreakResponse:
    state = await manager.load_or_create_state()
    return StreakResponse(
        current_streak=state.current_streak,
        best_streak=state.best_streak,
        last_active_day=state.last_active_day,
        is_lit_today=await manager.is_lit_today(),
    )


@router.get("", response_model=StreakResponse)
async def get_streak(
    user: CurrentUser,
    db: DbSession,
):
    return await _streak_response(StreakManager(db))


@router.post("/activity", response_model=ActivityResponse)
async def mark_activity(
    data: ActivityRequest,
    user: CurrentUser,
    db: DbSession,
):
    """Mark a day as active. Marking the same day twice is a no-op."""
    manager = StreakManager(db)
    marked = await manager.mark_activity(on=data.day)
    return ActivityResponse(marked=marked, streak=await _streak_response(manager))
