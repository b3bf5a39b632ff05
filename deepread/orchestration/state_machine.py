"""
State machine for the PracticeSession lifecycle.

    ready -> in_progress -> completed
      |          |
      +----------+-------> expired

Completed and expired sessions are terminal.
"""

import uuid
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from deepread.kernel.events.event_store import EventStore
from deepread.kernel.models.base import utcnow
from deepread.kernel.models.event_log import EventType
from deepread.kernel.models.idea import Idea
from deepread.kernel.models.practice_session import (
    PracticeSession,
    PracticeSessionStatus,
    PracticeSessionType,
    Test,
    TestType,
)
from deepread.logging_config import get_logger

logger = get_logger(__name__)


_TRANSITIONS: Dict[PracticeSessionStatus, Set[PracticeSessionStatus]] = {
    PracticeSessionStatus.READY: {PracticeSessionStatus.IN_PROGRESS, PracticeSessionStatus.EXPIRED},
    PracticeSessionStatus.IN_PROGRESS: {PracticeSessionStatus.COMPLETED, PracticeSessionStatus.EXPIRED},
    PracticeSessionStatus.COMPLETED: set(),
    PracticeSessionStatus.EXPIRED: set(),
}


def valid_transitions(from_status: PracticeSessionStatus) -> List[PracticeSessionStatus]:
    """Return list of valid target statuses from given status."""
    return sorted(_TRANSITIONS.get(PracticeSessionStatus(from_status), set()), key=lambda s: s.value)


def can_transition(from_status: PracticeSessionStatus, to_status: PracticeSessionStatus) -> bool:
    return PracticeSessionStatus(to_status) in _TRANSITIONS.get(PracticeSessionStatus(from_status), set())


class PracticeSessionStateMachine:
    """Creates practice sessions and moves them through their lifecycle with event logging."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def create_session(
        self,
        idea: Idea,
        session_type: PracticeSessionType = PracticeSessionType.LESSON_PRACTICE,
        review_item_ids: Optional[Iterable[uuid.UUID]] = None,
        test_type: Optional[TestType] = None,
    ) -> PracticeSession:
        """Start a new session in `ready` for an idea, optionally with an attached test."""
        now = utcnow()
        practice_session = PracticeSession(
            id=uuid.uuid4(),
            idea_id=idea.id,
            book_id=str(idea.book_id) if idea.book_id else "",
            type=session_type,
            status=PracticeSessionStatus.READY,
            config_version=1,
            created_at=now,
            updated_at=now,
            test=None,
        )
        if review_item_ids is not None:
            practice_session.set_lesson_practice_review_item_ids(review_item_ids)
        if test_type is not None:
            practice_session.test = Test(
                id=uuid.uuid4(),
                idea_id=idea.id,
                idea_title=idea.title,
                book_title=idea.book_title,
                test_type=test_type,
                created_at=now,
            )

        self.session.add(practice_session)
        await self.event_store.log(
            event_type=EventType.PRACTICE_SESSION_CREATED,
            entity_type="practice_session",
            entity_id=practice_session.id,
            payload={
                "idea_id": idea.id,
                "book_id": practice_session.book_id,
                "type": session_type,
            },
        )
        await self.session.flush()
        logger.info("Created %s session %s for idea %s", session_type.value, practice_session.id, idea.id)
        return practice_session

    async def transition(
        self,
        practice_session: PracticeSession,
        to_status: PracticeSessionStatus,
    ) -> PracticeSession:
        """
        Move a session to a new status. Logs event and bumps `updated_at`.

        Raises:
            ValueError: if the transition is not allowed
        """
        from_status = PracticeSessionStatus(practice_session.status)
        to_status = PracticeSessionStatus(to_status)
        if not can_transition(from_status, to_status):
            raise ValueError(
                f"Invalid transition: {from_status.value} -> {to_status.value}"
            )

        practice_session.status = to_status
        practice_session.updated_at = utcnow()

        await self.event_store.log(
            event_type=EventType.PRACTICE_SESSION_STATUS_CHANGED,
            entity_type="practice_session",
            entity_id=practice_session.id,
            payload={
                "from_status": from_status,
                "to_status": to_status,
                "idea_id": practice_session.idea_id,
            },
        )
        await self.session.flush()
        return practice_session

    async def get_session(self, session_id: uuid.UUID) -> Optional[PracticeSession]:
        return await self.session.get(PracticeSession, session_id)
