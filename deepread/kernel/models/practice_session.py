"""
Practice session and test models.
"""

import json
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Set

from sqlalchemy import DateTime, ForeignKey, Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deepread.kernel.models.base import Base, generate_uuid, utcnow

if TYPE_CHECKING:
    from deepread.kernel.models.idea import Idea


class PracticeSessionType(str, Enum):
    LESSON_PRACTICE = "lesson_practice"
    REVIEW_PRACTICE = "review_practice"


class PracticeSessionStatus(str, Enum):
    """Session lifecycle: ready -> in_progress -> completed / expired."""
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EXPIRED = "expired"


class TestType(str, Enum):
    INITIAL = "initial"
    REVIEW = "review"


class PracticeSession(Base):
    """
    A bounded practice activity for an idea.

    `config_data` is an opaque, versioned blob owned by whatever drives the
    practice flow; lesson practice stores its review-item ids there.
    """

    __tablename__ = "practice_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    idea_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[PracticeSessionType] = mapped_column(
        String(50),
        nullable=False,
        default=PracticeSessionType.LESSON_PRACTICE,
    )
    status: Mapped[PracticeSessionStatus] = mapped_column(
        String(50),
        nullable=False,
        default=PracticeSessionStatus.READY,
    )
    config_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    config_data: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    test: Mapped[Optional["Test"]] = relationship(
        "Test",
        back_populates="practice_session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
        lazy="selectin",
    )

    def set_lesson_practice_review_item_ids(self, review_item_ids: Iterable[uuid.UUID]) -> None:
        """Store review item ids as a sorted, de-duplicated list."""
        stable_ids = sorted({str(item_id).upper() for item_id in review_item_ids})
        self.config_data = json.dumps({"reviewItemIds": stable_ids}).encode("utf-8")

    def lesson_practice_review_item_id_set(self) -> Optional[Set[uuid.UUID]]:
        """Read review item ids back; None when there is no readable config."""
        if not self.config_data:
            return None
        try:
            config = json.loads(self.config_data.decode("utf-8"))
            raw_ids = config["reviewItemIds"]
        except (UnicodeDecodeError, ValueError, KeyError, TypeError):
            return None
        ids = set()
        for raw in raw_ids:
            try:
                ids.add(uuid.UUID(str(raw)))
            except ValueError:
                continue
        return ids


class Test(Base):
    """A generated test for an idea, optionally attached to a practice session."""

    __tablename__ = "tests"
    __test__ = False  # not a pytest test class

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    idea_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("ideas.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=True,
        index=True,
    )
    practice_session_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("practice_sessions.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )
    idea_title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    book_title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    test_type: Mapped[TestType] = mapped_column(String(20), nullable=False, default=TestType.INITIAL)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    scheduled_for: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    idea: Mapped[Optional["Idea"]] = relationship("Idea", back_populates="tests")
    practice_session: Mapped[Optional["PracticeSession"]] = relationship(
        "PracticeSession",
        back_populates="test",
    )
