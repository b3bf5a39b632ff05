"""
Progress model - one row per completed practice attempt on an idea.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deepread.kernel.models.base import Base, generate_uuid, utcnow
from deepread.kernel.scoring import calculate_mastery_level, level_name

if TYPE_CHECKING:
    from deepread.kernel.models.idea import Idea


class Progress(Base):
    """
    A completed attempt at an idea for a given level.

    Rows are append-only: they are created once per attempt and deleted
    only together with their idea.
    """

    __tablename__ = "progress"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    idea_id: Mapped[str] = mapped_column(
        ForeignKey("ideas.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )

    level: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    mastery_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    idea: Mapped["Idea"] = relationship("Idea", back_populates="progress")

    __table_args__ = (
        Index("ix_progress_idea_level", "idea_id", "level"),
    )

    @classmethod
    def for_attempt(
        cls,
        idea_id: str,
        level: int,
        score: int,
        completed_at: Optional[datetime] = None,
    ) -> "Progress":
        """Build a completed attempt with its mastery level derived from the score."""
        return cls(
            id=generate_uuid(),
            idea_id=idea_id,
            level=level,
            score=score,
            mastery_level=calculate_mastery_level(score, level),
            is_completed=True,
            completed_at=completed_at or utcnow(),
        )

    @property
    def level_name(self) -> str:
        return level_name(self.level)
