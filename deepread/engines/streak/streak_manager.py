"""
Streak Manager - daily practice streak over the singleton StreakState row.
"""

from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from deepread.kernel.events.event_store import EventStore
from deepread.kernel.models.event_log import EventType
from deepread.kernel.models.streak import STREAK_SINGLETON_ID, StreakState
from deepread.logging_config import get_logger

logger = get_logger(__name__)


class StreakManager:
    """
    Counts consecutive days with practice activity.

    Activity on the day after the last active day extends the streak; any
    longer gap restarts it at 1. The best streak never decreases.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def load_or_create_state(self) -> StreakState:
        state = await self.session.get(StreakState, STREAK_SINGLETON_ID)
        if state is None:
            state = StreakState(
                id=STREAK_SINGLETON_ID,
                current_streak=0,
                best_streak=0,
                last_active_day=None,
            )
            self.session.add(state)
            await self.session.flush()
        return state

    async def mark_activity(self, on: Optional[date] = None) -> bool:
        """Record activity for a day. Returns False for a day on or before the last marked one."""
        today = on or date.today()
        state = await self.load_or_create_state()

        last = state.last_active_day
        if last is not None and today <= last:
            return False

        if last is not None and last == today - timedelta(days=1):
            state.current_streak += 1
        else:
            state.current_streak = 1
        state.last_active_day = today
        if state.current_streak > state.best_streak:
            state.best_streak = state.current_streak

        await self.event_store.log(
            event_type=EventType.STREAK_EXTENDED,
            entity_type="streak",
            entity_id=STREAK_SINGLETON_ID,
            payload={
                "day": today,
                "current_streak": state.current_streak,
                "best_streak": state.best_streak,
            },
        )
        await self.session.flush()
        logger.debug("Streak now %d (best %d)", state.current_streak, state.best_streak)
        return True

    async def is_lit_today(self, today: Optional[date] = None) -> bool:
        state = await self.load_or_create_state()
        return state.last_active_day == (today or date.today())
