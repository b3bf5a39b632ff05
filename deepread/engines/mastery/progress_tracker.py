"""
Progress Tracker - records completed attempts and rolls mastery up onto ideas (DB-backed).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from deepread.kernel.events.event_store import EventStore
from deepread.kernel.models.base import utcnow
from deepread.kernel.models.event_log import EventType
from deepread.kernel.models.idea import Idea
from deepread.kernel.models.progress import Progress
from deepread.kernel.scoring import MAX_MASTERY_LEVEL
from deepread.logging_config import get_logger

logger = get_logger(__name__)


class BookMasterySummary(BaseModel):
    """How far the learner has got through a book's ideas."""

    book_id: uuid.UUID
    total_ideas: int = 0
    not_started: int = 0
    in_progress: int = 0
    mastered: int = 0


class ProgressTracker:
    """
    Tracks practice attempts per idea.

    Every completed attempt becomes one immutable Progress row. The idea's
    own mastery level is the best level reached so far: a weaker later
    attempt never lowers it.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def record_completion(
        self,
        idea_id: str,
        level: int,
        score: int,
        completed_at: Optional[datetime] = None,
    ) -> Optional[Progress]:
        """Record a completed attempt. Returns None if the idea does not exist."""
        idea = await self.session.get(Idea, idea_id)
        if idea is None:
            return None

        progress = Progress.for_attempt(idea_id, level, score, completed_at=completed_at)
        self.session.add(progress)

        previous_mastery = idea.mastery_level or 0
        idea.mastery_level = max(previous_mastery, progress.mastery_level)
        idea.last_practiced = progress.completed_at
        idea.current_level = level

        await self.event_store.log(
            event_type=EventType.PROGRESS_RECORDED,
            entity_type="idea",
            entity_id=idea_id,
            payload={
                "progress_id": progress.id,
                "level": level,
                "score": score,
                "mastery_level": progress.mastery_level,
                "idea_mastery_level": idea.mastery_level,
            },
        )
        await self.session.flush()

        if idea.mastery_level > previous_mastery:
            logger.info(
                "Idea %s mastery %d -> %d", idea_id, previous_mastery, idea.mastery_level,
            )
        return progress

    async def get_progress(self, idea_id: str) -> List[Progress]:
        """All attempts for an idea, oldest first."""
        result = await self.session.execute(
            select(Progress)
            .where(Progress.idea_id == idea_id)
            .order_by(Progress.completed_at)
        )
        return list(result.scalars().all())

    async def best_mastery(self, idea_id: str) -> int:
        """Highest mastery level reached over all attempts (0 if none)."""
        result = await self.session.execute(
            select(func.max(Progress.mastery_level)).where(Progress.idea_id == idea_id)
        )
        return result.scalar() or 0

    async def latest_attempt(self, idea_id: str, level: Optional[int] = None) -> Optional[Progress]:
        query = select(Progress).where(Progress.idea_id == idea_id)
        if level is not None:
            query = query.where(Progress.level == level)
        result = await self.session.execute(
            query.order_by(Progress.completed_at.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def book_summary(self, book_id: uuid.UUID) -> BookMasterySummary:
        """Count a book's ideas by mastery bucket."""
        result = await self.session.execute(
            select(Idea.mastery_level).where(Idea.book_id == book_id)
        )
        summary = BookMasterySummary(book_id=book_id)
        for mastery_level in result.scalars().all():
            summary.total_ideas += 1
            if mastery_level >= MAX_MASTERY_LEVEL:
                summary.mastered += 1
            elif mastery_level > 0:
                summary.in_progress += 1
            else:
                summary.not_started += 1
        return summary

    async def touch_idea(self, idea_id: str) -> Optional[Idea]:
        """Update the access timestamp of an idea."""
        idea = await self.session.get(Idea, idea_id)
        if idea is not None:
            idea.last_accessed = utcnow()
            await self.session.flush()
        return idea
