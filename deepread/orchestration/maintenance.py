"""
Maintenance runner - startup and foreground housekeeping as background tasks.

Three jobs run on the event loop, each in its own database session:
- migration: legacy idea ids -> book-specific ids, legacy primer back-fill
- cleanup: empty duplicate books, ideas without a book
- warm-up: prime the book, idea and profile queries

Migration and cleanup rewrite the same rows, so they share one lock and
never overlap, even when a startup run and a foreground run are requested
at the same time. A failing job is logged and recorded in the event log;
it never takes the other jobs (or the application) down with it.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deepread.ai.primer_service import PrimerService
from deepread.engines.library.book_service import BookService
from deepread.engines.profile.profile_service import ProfileService
from deepread.kernel.events.event_store import EventStore
from deepread.kernel.models.event_log import EventType
from deepread.kernel.models.idea import Idea
from deepread.logging_config import get_logger

logger = get_logger(__name__)

Job = Callable[[AsyncSession], Awaitable[Dict[str, int]]]


async def run_migration(session: AsyncSession) -> Dict[str, int]:
    migrated = await BookService(session).migrate_existing_data_to_book_specific_ids()
    backfilled = await PrimerService(session).backfill_legacy_primers()
    return {"ideas_migrated": migrated, "primers_backfilled": backfilled}


async def run_cleanup(session: AsyncSession) -> Dict[str, int]:
    service = BookService(session)
    books_deleted = await service.cleanup_duplicate_books()
    ideas_deleted = await service.cleanup_orphaned_data()
    return {"books_deleted": books_deleted, "ideas_deleted": ideas_deleted}


async def run_warm_up(session: AsyncSession) -> Dict[str, int]:
    books = await BookService(session).get_all_books()
    idea_count = (await session.execute(select(func.count(Idea.id)))).scalar() or 0
    await ProfileService(session).get_profile()
    return {"books": len(books), "ideas": idea_count}


class MaintenanceRunner:
    """
    Schedules the maintenance jobs and hands back their task handles.

    Usage:
        runner = MaintenanceRunner(async_session_maker)
        runner.start()
        ...
        await runner.wait()    # or runner.cancel() on shutdown
    """

    def __init__(
        self,
        session_maker: async_sessionmaker,
        migration: Job = run_migration,
        cleanup: Job = run_cleanup,
        warm_up: Job = run_warm_up,
    ):
        self.session_maker = session_maker
        self._migration = migration
        self._cleanup = cleanup
        self._warm_up = warm_up
        self._lock = asyncio.Lock()
        self.tasks: List[asyncio.Task] = []
        self.failures: Dict[str, BaseException] = {}

    def start(self) -> List[asyncio.Task]:
        """Schedule all three jobs. Must be called from a running event loop."""
        new_tasks = [
            asyncio.create_task(self._run("migration", self._migration, exclusive=True), name="maintenance.migration"),
            asyncio.create_task(self._run("cleanup", self._cleanup, exclusive=True), name="maintenance.cleanup"),
            asyncio.create_task(self._run("warm_up", self._warm_up, exclusive=False), name="maintenance.warm_up"),
        ]
        self.tasks.extend(new_tasks)
        return new_tasks

    def run_foreground(self) -> asyncio.Task:
        """Schedule a cleanup pass when the client comes back to the foreground."""
        task = asyncio.create_task(
            self._run("cleanup", self._cleanup, exclusive=True),
            name="maintenance.foreground_cleanup",
        )
        self.tasks.append(task)
        return task

    async def run_migration(self) -> Optional[Dict[str, int]]:
        return await self._run("migration", self._migration, exclusive=True)

    async def run_cleanup(self) -> Optional[Dict[str, int]]:
        return await self._run("cleanup", self._cleanup, exclusive=True)

    async def wait(self) -> None:
        """Wait for every scheduled job. Job failures were already recorded."""
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)

    async def cancel(self) -> None:
        for task in self.tasks:
            if not task.done():
                task.cancel()
        await self.wait()
        self.tasks.clear()

    async def _run(self, name: str, job: Job, exclusive: bool) -> Optional[Dict[str, int]]:
        if exclusive:
            async with self._lock:
                return await self._run_in_session(name, job)
        return await self._run_in_session(name, job)

    async def _run_in_session(self, name: str, job: Job) -> Optional[Dict[str, int]]:
        try:
            async with self.session_maker() as session:
                result = await job(session)
                await EventStore(session).log(
                    event_type=EventType.MAINTENANCE_COMPLETED,
                    entity_type="maintenance",
                    entity_id=name,
                    payload=result,
                )
                await session.commit()
        except asyncio.CancelledError:
            logger.info("Maintenance job %s cancelled", name)
            raise
        except Exception as exc:
            logger.exception("Maintenance job %s failed", name)
            self.failures[name] = exc
            await self._record_failure(name, exc)
            return None

        logger.info("Maintenance job %s finished: %s", name, result)
        return result

    async def _record_failure(self, name: str, exc: BaseException) -> None:
        try:
            async with self.session_maker() as session:
                await EventStore(session).log(
                    event_type=EventType.MAINTENANCE_FAILED,
                    entity_type="maintenance",
                    entity_id=name,
                    payload={"error": f"{type(exc).__name__}: {exc}"},
                )
                await session.commit()
        except Exception:
            logger.exception("Could not record failure of maintenance job %s", name)
