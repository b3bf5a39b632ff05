"""
Profile Service - the learner's single profile record.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deepread.kernel.events.event_store import EventStore
from deepread.kernel.models.base import generate_uuid
from deepread.kernel.models.event_log import EventType
from deepread.kernel.models.user_profile import UserProfile
from deepread.logging_config import get_logger

logger = get_logger(__name__)


class ProfileService:
    """Lazily creates the profile and applies edits to it."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def get_profile(self) -> Optional[UserProfile]:
        result = await self.session.execute(
            select(UserProfile).order_by(UserProfile.created_at).limit(1)
        )
        return result.scalar_one_or_none()

    async def ensure_profile(self) -> UserProfile:
        """Return the profile, creating an empty one on first use."""
        profile = await self.get_profile()
        if profile is None:
            profile = UserProfile(id=generate_uuid(), name="")
            self.session.add(profile)
            await self.session.flush()
            logger.info("Created user profile %s", profile.id)
        return profile

    async def update_name(self, name: str) -> UserProfile:
        """
        Rename the learner.

        Raises:
            ValueError: if the name is blank
        """
        trimmed = name.strip()
        if not trimmed:
            raise ValueError("Name must not be empty")
        profile = await self.ensure_profile()
        return await self._apply(profile, {"name": trimmed})

    async def update_preferences(
        self,
        has_completed_initial_book_selection: Optional[bool] = None,
        last_opened_book_title: Optional[str] = None,
    ) -> UserProfile:
        profile = await self.ensure_profile()
        changes = {}
        if has_completed_initial_book_selection is not None:
            changes["has_completed_initial_book_selection"] = has_completed_initial_book_selection
        if last_opened_book_title is not None:
            changes["last_opened_book_title"] = last_opened_book_title.strip() or None
        return await self._apply(profile, changes)

    async def _apply(self, profile: UserProfile, changes: dict) -> UserProfile:
        changes = {k: v for k, v in changes.items() if getattr(profile, k) != v}
        if not changes:
            return profile
        for key, value in changes.items():
            setattr(profile, key, value)
        await self.event_store.log(
            event_type=EventType.PROFILE_UPDATED,
            entity_type="user_profile",
            entity_id=profile.id,
            payload=changes,
        )
        await self.session.flush()
        return profile
