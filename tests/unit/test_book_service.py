"""Unit tests for BookService: books, ideas, cleanup and id migration."""

import uuid

import pytest
from sqlalchemy import delete, func, select

from deepread.engines.library.book_service import BookService, titles_overlap
from deepread.engines.mastery.progress_tracker import ProgressTracker
from deepread.kernel.events.event_store import EventStore
from deepread.kernel.models import (
    Book,
    EventType,
    Idea,
    PracticeSession,
    Primer,
    Progress,
)


async def _count(session, column) -> int:
    return await session.scalar(select(func.count(column)))


class TestFindOrCreateBook:
    @pytest.mark.asyncio
    async def test_creates_with_sequential_numbers(self, db_session):
        service = BookService(db_session)
        first = await service.find_or_create_book("Atomic Habits")
        second = await service.find_or_create_book("Deep Work", author="Cal Newport")

        assert first.book_number == 1
        assert second.book_number == 2
        assert second.author == "Cal Newport"

    @pytest.mark.asyncio
    async def test_trims_and_matches_case_insensitively(self, db_session):
        service = BookService(db_session)
        created = await service.find_or_create_book("  Atomic Habits  ")
        assert created.title == "Atomic Habits"

        found = await service.find_or_create_book("atomic habits")
        assert found.id == created.id
        assert await _count(db_session, Book.id) == 1

    @pytest.mark.asyncio
    async def test_matches_containing_title(self, db_session):
        service = BookService(db_session)
        created = await service.find_or_create_book("Atomic Habits: An Easy & Proven Way")
        assert (await service.find_or_create_book("Atomic Habits")).id == created.id

    @pytest.mark.asyncio
    async def test_empty_title_rejected(self, db_session):
        with pytest.raises(ValueError):
            await BookService(db_session).find_or_create_book("   ")

    @pytest.mark.asyncio
    async def test_like_wildcards_are_literal(self, db_session):
        service = BookService(db_session)
        await service.find_or_create_book("Atomic Habits")
        other = await service.find_or_create_book("100%")
        assert other.book_number == 2


class TestSaveIdeas:
    @pytest.mark.asyncio
    async def test_rewrites_legacy_ids_and_sorts(self, db_session):
        service = BookService(db_session)
        book = await service.find_or_create_book("Atomic Habits")
        await service.find_or_create_book("Deep Work")
        book = await service.find_or_create_book("Atomic Habits")

        ideas = [
            Idea.create(id="i2", title="Second"),
            Idea.create(id="i1", title="First"),
        ]
        book = await service.save_ideas(ideas, book)

        assert [idea.id for idea in book.ideas] == ["b1i1", "b1i2"]
        assert all(idea.book_title == "Atomic Habits" for idea in book.ideas)
        assert (await db_session.get(Idea, "b1i1")).book_id == book.id

    @pytest.mark.asyncio
    async def test_replacing_ideas_removes_old_ones(self, db_session, test_book):
        service = BookService(db_session)
        await ProgressTracker(db_session).record_completion("b1i3", level=1, score=9)

        await service.save_ideas([Idea.create(id="i1", title="Only idea")], test_book)

        assert [idea.id for idea in test_book.ideas] == ["b1i1"]
        assert await _count(db_session, Idea.id) == 1
        assert await _count(db_session, Progress.id) == 0

    @pytest.mark.asyncio
    async def test_resaving_existing_ideas_keeps_children(self, db_session, test_book):
        service = BookService(db_session)
        await ProgressTracker(db_session).record_completion("b1i1", level=1, score=9)
        db_session.add(Primer.create(idea_id="b1i1", thesis="Two systems"))
        await db_session.flush()

        kept = [idea for idea in test_book.ideas if idea.id != "b1i3"]
        await service.save_ideas(kept + [Idea.create(id="i4", title="Anchoring")], test_book)

        assert [idea.id for idea in test_book.ideas] == ["b1i1", "b1i2", "b1i4"]
        assert await _count(db_session, Idea.id) == 3
        assert await _count(db_session, Progress.id) == 1
        assert await _count(db_session, Primer.id) == 1

        await service.save_ideas(list(test_book.ideas), test_book)
        assert [idea.id for idea in test_book.ideas] == ["b1i1", "b1i2", "b1i4"]
        assert await _count(db_session, Progress.id) == 1

    @pytest.mark.asyncio
    async def test_foreign_book_ids_rejected(self, db_session, test_book):
        with pytest.raises(ValueError):
            await BookService(db_session).save_ideas([Idea.create(id="b2i1", title="x")], test_book)
        assert len(test_book.ideas) == 3

    @pytest.mark.asyncio
    async def test_duplicate_ids_rejected(self, db_session, test_book):
        ideas = [Idea.create(id="i1", title="a"), Idea.create(id="b1i1", title="b")]
        with pytest.raises(ValueError):
            await BookService(db_session).save_ideas(ideas, test_book)


class TestUpdateBook:
    @pytest.mark.asyncio
    async def test_update_author_by_title(self, db_session, test_book):
        book = await BookService(db_session).update_book_author("fast and slow", "D. Kahneman")
        assert book is test_book
        assert book.author == "D. Kahneman"

    @pytest.mark.asyncio
    async def test_update_author_unknown_title(self, db_session, test_book):
        assert await BookService(db_session).update_book_author("Deep Work", "Cal Newport") is None

    @pytest.mark.asyncio
    async def test_rename_updates_idea_book_titles_and_logs(self, db_session, test_book):
        service = BookService(db_session)
        await service.update_book_details(test_book, title="  Thinking Fast  ")

        assert test_book.title == "Thinking Fast"
        assert {idea.book_title for idea in test_book.ideas} == {"Thinking Fast"}
        assert [idea.id for idea in test_book.ideas] == ["b1i1", "b1i2", "b1i3"]

        history = await EventStore(db_session).get_entity_history(
            "book", test_book.id, event_types=[EventType.BOOK_UPDATED],
        )
        assert len(history) == 1
        assert history[0].payload == {"title": "Thinking Fast"}

    @pytest.mark.asyncio
    async def test_unchanged_details_log_nothing(self, db_session, test_book):
        await BookService(db_session).update_book_details(test_book, author="Daniel Kahneman")
        history = await EventStore(db_session).get_entity_history("book", test_book.id)
        assert history == []

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, db_session, test_book):
        with pytest.raises(ValueError):
            await BookService(db_session).update_book_details(test_book, title="   ")


class TestDeleteBook:
    @pytest.mark.asyncio
    async def test_delete_cascades_to_ideas_progress_and_primer(self, db_session, test_book):
        await ProgressTracker(db_session).record_completion("b1i1", level=1, score=9)
        db_session.add(Primer.create(idea_id="b1i1", thesis="Two systems"))
        await db_session.flush()

        await BookService(db_session).delete_book(test_book)

        assert await _count(db_session, Book.id) == 0
        assert await _count(db_session, Idea.id) == 0
        assert await _count(db_session, Progress.id) == 0
        assert await _count(db_session, Primer.id) == 0

    @pytest.mark.asyncio
    async def test_database_cascade(self, session_maker, book_factory):
        """Rows owned by a book go with it even when deleted outside the ORM."""
        async with session_maker() as session:
            book = book_factory("Range", idea_ids=["b1i1"])
            session.add(book)
            await session.flush()
            session.add(Progress.for_attempt("b1i1", level=2, score=8))
            session.add(Primer.create(idea_id="b1i1", thesis="Breadth wins"))
            await session.commit()
            book_id = book.id

        async with session_maker() as session:
            await session.execute(delete(Book).where(Book.id == book_id))
            await session.commit()

        async with session_maker() as session:
            assert await _count(session, Idea.id) == 0
            assert await _count(session, Progress.id) == 0
            assert await _count(session, Primer.id) == 0


class TestCleanup:
    @pytest.mark.asyncio
    async def test_duplicate_books_removed(self, db_session, book_factory):
        db_session.add_all([
            book_factory("Atomic Habits", book_number=1, idea_ids=["b1i1"]),
            book_factory("atomic habits", book_number=2),
            book_factory("Atomic Habits (Summary)", book_number=3),
            book_factory("Deep Work", book_number=4),
        ])
        await db_session.flush()

        deleted = await BookService(db_session).cleanup_duplicate_books()

        assert deleted == 2
        titles = sorted(b.title for b in await BookService(db_session).get_all_books())
        assert titles == ["Atomic Habits", "Deep Work"]

    @pytest.mark.asyncio
    async def test_books_with_ideas_are_kept(self, db_session, book_factory):
        db_session.add_all([
            book_factory("Atomic Habits", book_number=1, idea_ids=["b1i1"]),
            book_factory("Atomic Habits", book_number=2, idea_ids=["b2i1"]),
        ])
        await db_session.flush()
        assert await BookService(db_session).cleanup_duplicate_books() == 0

    @pytest.mark.asyncio
    async def test_orphaned_ideas_removed(self, db_session, test_book):
        db_session.add(Idea.create(id="b7i1", title="Lost idea"))
        await db_session.flush()

        assert await BookService(db_session).cleanup_orphaned_data() == 1
        assert await _count(db_session, Idea.id) == 3


def test_titles_overlap():
    assert titles_overlap("Atomic Habits", "atomic habits: tiny changes")
    assert titles_overlap("ATOMIC HABITS: TINY CHANGES", "atomic habits")
    assert not titles_overlap("Deep Work", "Atomic Habits")


class TestMigration:
    @pytest.mark.asyncio
    async def test_legacy_ids_rewritten_with_children(self, session_maker, book_factory):
        async with session_maker() as session:
            numbered = book_factory("Deep Work", book_number=1, idea_ids=["b1i1"])
            legacy = book_factory("Atomic Habits", book_number=0, idea_ids=["i1", "i2"])
            session.add_all([numbered, legacy])
            await session.flush()
            session.add(Progress.for_attempt("i1", level=3, score=9))
            session.add(Primer.from_legacy("i1", "Habits compound. Start small.", ["a", "b"], []))
            session.add(
                PracticeSession(
                    id=uuid.uuid4(),
                    idea_id="i1",
                    book_id=str(legacy.id),
                    test=None,
                )
            )
            await session.commit()
            legacy_id = legacy.id

        async with session_maker() as session:
            migrated = await BookService(session).migrate_existing_data_to_book_specific_ids()
            await session.commit()
        assert migrated == 2

        async with session_maker() as session:
            book = await session.get(Book, legacy_id)
            assert book.book_number == 2
            assert [idea.id for idea in book.ideas] == ["b2i1", "b2i2"]
            progress = (await session.execute(select(Progress))).scalars().one()
            assert progress.idea_id == "b2i1"
            primer = (await session.execute(select(Primer))).scalars().one()
            assert primer.idea_id == "b2i1"
            practice_session = (await session.execute(select(PracticeSession))).scalars().one()
            assert practice_session.idea_id == "b2i1"

    @pytest.mark.asyncio
    async def test_migration_is_idempotent(self, session_maker, book_factory):
        async with session_maker() as session:
            session.add(book_factory("Atomic Habits", book_number=0, idea_ids=["i1"]))
            await session.commit()

        async with session_maker() as session:
            assert await BookService(session).migrate_existing_data_to_book_specific_ids() == 1
            await session.commit()

        async with session_maker() as session:
            assert await BookService(session).migrate_existing_data_to_book_specific_ids() == 0
            await session.commit()

        async with session_maker() as session:
            books = await BookService(session).get_all_books()
            assert [b.book_number for b in books] == [1]
            assert [i.id for i in books[0].ideas] == ["b1i1"]
