"""
Book Service - books, their ideas, and library housekeeping.

Housekeeping covers three jobs that run at startup / foreground:
- migrating legacy idea ids ("i3") to book-specific ids ("b2i3")
- deleting empty duplicate books left behind by interrupted imports
- deleting ideas that lost their book
"""

import uuid
from typing import List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from deepread.kernel.events.event_store import EventStore
from deepread.kernel.models.base import utcnow
from deepread.kernel.models.book import Book
from deepread.kernel.models.event_log import EventType
from deepread.kernel.models.idea import Idea, book_specific_idea_id, is_book_specific_id
from deepread.kernel.models.practice_session import PracticeSession
from deepread.logging_config import get_logger

logger = get_logger(__name__)


def normalize_title(title: str) -> str:
    return title.strip()


def titles_overlap(a: str, b: str) -> bool:
    """Case-insensitive containment in either direction."""
    a, b = a.casefold(), b.casefold()
    return a in b or b in a


class BookService:
    """Library operations over books and ideas."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    async def find_or_create_book(self, title: str, author: Optional[str] = None) -> Book:
        """
        Return the book whose title contains `title` (case-insensitive), creating it if absent.

        Raises:
            ValueError: if the title is empty after trimming
        """
        normalized = normalize_title(title)
        if not normalized:
            raise ValueError("Book title must not be empty")

        existing = await self.get_book(normalized)
        if existing is not None:
            existing.last_accessed = utcnow()
            await self.session.flush()
            return existing

        book = Book(
            id=uuid.uuid4(),
            title=normalized,
            author=author,
            book_number=await self._next_book_number(),
            ideas=[],
        )
        self.session.add(book)
        await self.event_store.log(
            event_type=EventType.BOOK_CREATED,
            entity_type="book",
            entity_id=book.id,
            payload={"title": book.title, "book_number": book.book_number},
        )
        await self.session.flush()
        logger.info("Created book #%d %r", book.book_number, book.title)
        return book

    async def get_book(self, title: str) -> Optional[Book]:
        """First book (by creation) whose title contains `title`, case-insensitively."""
        normalized = normalize_title(title)
        result = await self.session.execute(
            select(Book)
            .where(func.lower(Book.title).contains(normalized.lower(), autoescape=True))
            .order_by(Book.created_at, Book.book_number)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_book_by_id(self, book_id: uuid.UUID) -> Optional[Book]:
        return await self.session.get(Book, book_id)

    async def get_all_books(self) -> List[Book]:
        result = await self.session.execute(
            select(Book).order_by(Book.created_at, Book.book_number)
        )
        return list(result.scalars().all())

    async def update_book_author(self, title: str, author: str) -> Optional[Book]:
        book = await self.get_book(title)
        if book is None:
            logger.debug("No book found to update author for %r", title)
            return None
        return await self.update_book_details(book, author=author)

    async def update_book_details(
        self,
        book: Book,
        title: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Book:
        """
        Rename and/or re-attribute a book. Ideas keep their ids.

        Raises:
            ValueError: if the new title is empty after trimming
        """
        changes = {}
        if title is not None:
            normalized = normalize_title(title)
            if not normalized:
                raise ValueError("Book title must not be empty")
            if normalized != book.title:
                book.title = normalized
                for idea in book.ideas:
                    idea.book_title = normalized
                changes["title"] = normalized
        if author is not None and author != book.author:
            book.author = author
            changes["author"] = author

        if changes:
            await self.event_store.log(
                event_type=EventType.BOOK_UPDATED,
                entity_type="book",
                entity_id=book.id,
                payload=changes,
            )
            await self.session.flush()
        return book

    async def delete_book(self, book: Book) -> None:
        """Delete a book together with its ideas and everything they own."""
        await self.event_store.log(
            event_type=EventType.BOOK_DELETED,
            entity_type="book",
            entity_id=book.id,
            payload={"title": book.title, "idea_count": len(book.ideas)},
        )
        await self.session.delete(book)
        await self.session.flush()

    # ------------------------------------------------------------------
    # Ideas
    # ------------------------------------------------------------------

    async def save_ideas(self, ideas: Sequence[Idea], book: Book) -> Book:
        """
        Replace a book's ideas.

        Legacy ids are rewritten to the book-specific form and the ideas are
        kept ordered by id. Ideas that are no longer part of the book are
        deleted along with their progress and primer.

        Raises:
            ValueError: if an id belongs to another book or appears twice
        """
        own_prefix = f"b{book.book_number}i"
        seen = set()
        for idea in ideas:
            new_id = idea.id if is_book_specific_id(idea.id) else book_specific_idea_id(book.book_number, idea.id)
            if not new_id.startswith(own_prefix):
                raise ValueError(f"Idea {idea.id} does not belong to book #{book.book_number}")
            if new_id in seen:
                raise ValueError(f"Duplicate idea id {new_id}")
            seen.add(new_id)

        # Attached ideas passed back in are kept; the rest (including ones
        # superseded by a new object with the same id) are deleted first
        incoming = {id(idea) for idea in ideas}
        stale = [idea for idea in book.ideas if id(idea) not in incoming]
        for idea in stale:
            book.ideas.remove(idea)
        if stale:
            await self.session.flush()

        for idea in ideas:
            if not is_book_specific_id(idea.id):
                idea.id = book_specific_idea_id(book.book_number, idea.id)
            if not idea.book_title:
                idea.book_title = book.title
        book.ideas = sorted(ideas, key=lambda i: i.id)

        book.last_accessed = utcnow()
        await self.event_store.log(
            event_type=EventType.IDEAS_SAVED,
            entity_type="book",
            entity_id=book.id,
            payload={"idea_ids": [idea.id for idea in book.ideas]},
        )
        await self.session.flush()
        logger.info("Saved %d ideas for book %r", len(book.ideas), book.title)
        return book

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    async def cleanup_duplicate_books(self) -> int:
        """
        Delete books with no ideas whose title overlaps a book that has ideas.

        Returns:
            Number of books deleted
        """
        books = await self.get_all_books()
        with_ideas = [b for b in books if b.ideas]
        to_delete = []
        for book in books:
            if book.ideas:
                continue
            duplicate_of = next(
                (other for other in with_ideas if other.id != book.id and titles_overlap(book.title, other.title)),
                None,
            )
            if duplicate_of is not None:
                logger.info(
                    "Deleting duplicate book %r (0 ideas), duplicate of %r (%d ideas)",
                    book.title, duplicate_of.title, len(duplicate_of.ideas),
                )
                to_delete.append(book)

        for book in to_delete:
            await self.delete_book(book)
        if not to_delete:
            logger.debug("No duplicate books found")
        return len(to_delete)

    async def cleanup_orphaned_data(self) -> int:
        """
        Delete ideas that are not attached to any book.

        Returns:
            Number of ideas deleted
        """
        result = await self.session.execute(select(Idea).where(Idea.book_id.is_(None)))
        orphans = list(result.scalars().all())
        for idea in orphans:
            logger.debug("Deleting orphaned idea %s %r", idea.id, idea.title)
            await self.session.delete(idea)
        if orphans:
            await self.session.flush()
        return len(orphans)

    async def migrate_existing_data_to_book_specific_ids(self) -> int:
        """
        Number unnumbered books and rewrite legacy idea ids. Safe to run repeatedly.

        Books still at number 0 are numbered after the highest existing
        number, in creation order. Progress, primer and test rows follow
        their idea's new id; practice sessions are re-pointed explicitly.

        Returns:
            Number of ideas migrated
        """
        books = await self.get_all_books()
        next_number = max((b.book_number for b in books), default=0) + 1
        for book in books:
            if book.book_number == 0:
                book.book_number = next_number
                next_number += 1
                logger.info("Assigned book number %d to %r", book.book_number, book.title)

        migrated = 0
        for book in books:
            for idea in list(book.ideas):
                if is_book_specific_id(idea.id):
                    continue
                old_id = idea.id
                new_id = book_specific_idea_id(book.book_number, old_id)
                idea.id = new_id
                for progress in idea.progress:
                    progress.idea_id = new_id
                if idea.primer is not None:
                    idea.primer.idea_id = new_id
                for test in idea.tests:
                    test.idea_id = new_id
                await self.session.execute(
                    update(PracticeSession)
                    .where(
                        PracticeSession.idea_id == old_id,
                        PracticeSession.book_id == str(book.id),
                    )
                    .values(idea_id=new_id)
                )
                migrated += 1
                logger.debug("Migrated idea %s -> %s", old_id, new_id)

        await self.session.flush()
        if migrated:
            logger.info("Migrated %d ideas across %d books to book-specific ids", migrated, len(books))
        return migrated

    async def _next_book_number(self) -> int:
        result = await self.session.execute(select(func.max(Book.book_number)))
        return (result.scalar() or 0) + 1
