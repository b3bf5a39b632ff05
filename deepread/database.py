"""
Engine and session management (SQLAlchemy 2.0 async).

The default store is a local SQLite file. Any async SQLAlchemy URL works;
PostgreSQL gets a pooled engine.
"""

from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from deepread.config import get_settings
from deepread.logging_config import get_logger

settings = get_settings()
logger = get_logger(__name__)


def enable_sqlite_pragmas(engine: AsyncEngine, *, wal: bool = True) -> None:
    """Foreign keys (for ON DELETE/UPDATE CASCADE) and a busy timeout on every new SQLite connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        if wal:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Engine for `url`.

    In-memory SQLite keeps one shared connection (StaticPool). File SQLite
    opens a connection per session (NullPool), so background maintenance
    never shares a connection with request handling.
    """
    if not url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )

    in_memory = make_url(url).database in (None, "", ":memory:")
    engine = create_async_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool if in_memory else NullPool,
    )
    enable_sqlite_pragmas(engine, wal=not in_memory)
    return engine


def make_session_maker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_maker = make_session_maker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request: committed when the handler succeeds, rolled back otherwise."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping_db(session: AsyncSession) -> bool:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database ping failed: %s", exc)
        return False
    return True


async def init_db() -> None:
    """Create missing tables."""
    # Registers every model on Base.metadata
    from deepread.kernel.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
