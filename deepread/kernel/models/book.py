"""
Book model - the aggregate root that owns a book's ideas.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deepread.kernel.models.base import Base, generate_uuid, utcnow

if TYPE_CHECKING:
    from deepread.kernel.models.idea import Idea


class Book(Base):
    """A book the learner is studying. Deleting it deletes its ideas."""

    __tablename__ = "books"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Sequential per-store number (1, 2, 3...) used in idea ids like "b2i3"
    book_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    last_accessed: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    ideas: Mapped[List["Idea"]] = relationship(
        "Idea",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Idea.id",
    )

    @property
    def idea_count(self) -> int:
        return len(self.ideas)

    def __repr__(self) -> str:
        return f"<Book #{self.book_number} {self.title!r}>"
