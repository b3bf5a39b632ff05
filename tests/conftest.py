"""
Pytest fixtures for Deepread tests.
"""

import uuid
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deepread.database import build_engine, make_session_maker
from deepread.kernel.models import Base, Book, Idea
from deepread.kernel.identity.jwt import JWTManager


# In-memory SQLite on one shared connection, foreign keys enforced
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine with foreign keys enforced."""
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker:
    """Session factory over the test engine, for tests that need several sessions."""
    return make_session_maker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def file_session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    File-backed SQLite with one connection per session.

    Used where sessions run concurrently (background maintenance), which a
    single shared in-memory connection cannot support.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'deepread-test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield make_session_maker(engine)

    await engine.dispose()


def make_book(
    title: str,
    book_number: int = 1,
    idea_ids: Optional[List[str]] = None,
    author: Optional[str] = None,
) -> Book:
    """Build a book (not yet added to a session) with ideas titled after their ids."""
    book = Book(
        id=uuid.uuid4(),
        title=title,
        author=author,
        book_number=book_number,
        ideas=[],
    )
    for idea_id in idea_ids or []:
        book.ideas.append(
            Idea.create(
                id=idea_id,
                title=f"Idea {idea_id}",
                description=f"Description of {idea_id}.",
                book_title=title,
            )
        )
    return book


@pytest_asyncio.fixture
async def test_book(db_session: AsyncSession) -> Book:
    """A book with three ideas."""
    book = make_book("Thinking, Fast and Slow", idea_ids=["b1i1", "b1i2", "b1i3"], author="Daniel Kahneman")
    db_session.add(book)
    await db_session.flush()
    return book


@pytest.fixture
def jwt_manager() -> JWTManager:
    """Create a JWT manager for tests."""
    return JWTManager(
        secret_key="test-secret-key-for-testing-only",
        algorithm="HS256",
        access_token_expire_minutes=30,
    )


@pytest.fixture
def book_factory():
    """Factory for unsaved books: book_factory("Title", book_number=2, idea_ids=["b2i1"])."""
    return make_book
