"""
Idea model - the atomic unit of book content a learner studies.

Ideas carry book-specific string ids: "b1i3" is idea 3 of book 1. Ideas
created before book numbering existed use the legacy form "i3" until the
startup migration rewrites them.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deepread.kernel.models.base import Base

if TYPE_CHECKING:
    from deepread.kernel.models.book import Book
    from deepread.kernel.models.primer import Primer
    from deepread.kernel.models.progress import Progress
    from deepread.kernel.models.practice_session import Test


class ImportanceLevel(str, Enum):
    """How central an idea is to its book."""
    FOUNDATION = "Foundation"
    BUILDING_BLOCK = "Building Block"
    ENHANCEMENT = "Enhancement"


def book_specific_idea_id(book_number: int, original_id: str) -> str:
    """Rewrite a legacy id ("i3") into the book-specific form ("b2i3")."""
    idea_number = original_id[1:] if original_id.startswith("i") else original_id
    return f"b{book_number}i{idea_number}"


def is_book_specific_id(idea_id: str) -> bool:
    return idea_id.startswith("b")


class Idea(Base):
    """A single idea extracted from a book."""

    __tablename__ = "ideas"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    book_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    book_title: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    depth_target: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # 1 = Do, 2 = Question, 3 = Reinvent
    mastery_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # 0 = not started .. 3 = mastered
    last_practiced: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    current_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    importance: Mapped[Optional[ImportanceLevel]] = mapped_column(
        String(50),
        nullable=True,
        default=ImportanceLevel.BUILDING_BLOCK,
    )
    last_accessed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    book: Mapped[Optional["Book"]] = relationship("Book", back_populates="ideas")
    progress: Mapped[List["Progress"]] = relationship(
        "Progress",
        back_populates="idea",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Progress.completed_at",
    )
    primer: Mapped[Optional["Primer"]] = relationship(
        "Primer",
        back_populates="idea",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
        lazy="selectin",
    )
    tests: Mapped[List["Test"]] = relationship(
        "Test",
        back_populates="idea",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    @classmethod
    def create(
        cls,
        id: str,
        title: str,
        description: str = "",
        book_title: str = "",
        depth_target: int = 1,
        importance: Optional[ImportanceLevel] = ImportanceLevel.BUILDING_BLOCK,
    ) -> "Idea":
        """New idea with empty owned collections, ready to attach to a book."""
        return cls(
            id=id,
            title=title,
            description=description,
            book_title=book_title,
            depth_target=depth_target,
            mastery_level=0,
            importance=importance,
            progress=[],
            primer=None,
            tests=[],
        )

    @property
    def has_primer(self) -> bool:
        return self.primer is not None

    @property
    def idea_number(self) -> str:
        """"b1i3" -> "3"; ids without an "i" separator are returned as-is."""
        parts = self.id.split("i")
        return parts[1] if len(parts) > 1 else self.id

    @property
    def book_number(self) -> str:
        """"b1i3" -> "1"; legacy ids belong to book "1"."""
        parts = self.id.split("i")
        if len(parts) > 1 and parts[0].startswith("b"):
            return parts[0][1:]
        return "1"

    def __repr__(self) -> str:
        return f"<Idea {self.id} {self.title!r}>"
