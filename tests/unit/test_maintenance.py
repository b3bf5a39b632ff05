"""Unit tests for the background maintenance runner."""

import asyncio

import pytest
from sqlalchemy import select

from deepread.kernel.models import Book, EventLog, EventType, Idea, Progress
from deepread.orchestration.maintenance import MaintenanceRunner


def recording_job(name, order, delay=0.01, result=None):
    async def job(session):
        order.append(f"{name}:start")
        await asyncio.sleep(delay)
        order.append(f"{name}:end")
        return result or {}
    return job


async def failing_job(session):
    raise RuntimeError("disk on fire")


async def maintenance_events(session_maker):
    async with session_maker() as session:
        result = await session.execute(
            select(EventLog).where(EventLog.entity_type == "maintenance").order_by(EventLog.created_at)
        )
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_startup_jobs_migrate_and_clean(file_session_maker, book_factory):
    async with file_session_maker() as session:
        book = book_factory("Thinking, Fast and Slow", book_number=0, idea_ids=["i1", "i2"])
        session.add(book)
        session.add(book_factory("thinking, fast", book_number=3))
        session.add(Idea.create(id="i9", title="Stray idea"))
        await session.flush()
        session.add(Progress.for_attempt(idea_id="i1", level=1, score=9))
        await session.commit()
        book_id = book.id

    runner = MaintenanceRunner(file_session_maker)
    tasks = runner.start()
    assert [t.get_name() for t in tasks] == [
        "maintenance.migration",
        "maintenance.cleanup",
        "maintenance.warm_up",
    ]
    await runner.wait()

    assert runner.failures == {}
    async with file_session_maker() as session:
        book = await session.get(Book, book_id)
        assert book.book_number == 4
        assert [i.id for i in book.ideas] == ["b4i1", "b4i2"]
        progress = (await session.execute(select(Progress))).scalars().all()
        assert [p.idea_id for p in progress] == ["b4i1"]
        assert await session.get(Idea, "i9") is None
        titles = (await session.execute(select(Book.title))).scalars().all()
        assert titles == ["Thinking, Fast and Slow"]

    events = await maintenance_events(file_session_maker)
    completed = {e.entity_id: e.payload for e in events if e.event_type == EventType.MAINTENANCE_COMPLETED.value}
    assert completed["migration"]["ideas_migrated"] == 2
    assert completed["cleanup"] == {"books_deleted": 1, "ideas_deleted": 1}
    assert completed["warm_up"]["books"] >= 1


@pytest.mark.asyncio
async def test_failed_job_is_recorded_and_others_finish(file_session_maker):
    order = []
    runner = MaintenanceRunner(
        file_session_maker,
        migration=failing_job,
        cleanup=recording_job("cleanup", order),
        warm_up=recording_job("warm_up", order),
    )
    runner.start()
    await runner.wait()

    assert set(runner.failures) == {"migration"}
    assert isinstance(runner.failures["migration"], RuntimeError)
    assert "cleanup:end" in order and "warm_up:end" in order

    events = await maintenance_events(file_session_maker)
    failed = [e for e in events if e.event_type == EventType.MAINTENANCE_FAILED.value]
    assert len(failed) == 1
    assert failed[0].entity_id == "migration"
    assert "disk on fire" in failed[0].payload["error"]
    completed = {e.entity_id for e in events if e.event_type == EventType.MAINTENANCE_COMPLETED.value}
    assert completed == {"cleanup", "warm_up"}


@pytest.mark.asyncio
async def test_migration_and_cleanup_never_overlap(file_session_maker):
    order = []
    runner = MaintenanceRunner(
        file_session_maker,
        migration=recording_job("migration", order),
        cleanup=recording_job("cleanup", order),
        warm_up=recording_job("warm_up", order),
    )
    runner.start()
    # A foreground cleanup requested while the startup jobs are running
    foreground = asyncio.create_task(runner.run_cleanup())
    await runner.wait()
    await foreground

    exclusive = [step for step in order if not step.startswith("warm_up")]
    assert exclusive == [
        "migration:start", "migration:end",
        "cleanup:start", "cleanup:end",
        "cleanup:start", "cleanup:end",
    ]


@pytest.mark.asyncio
async def test_warm_up_does_not_wait_for_lock(file_session_maker):
    order = []
    runner = MaintenanceRunner(
        file_session_maker,
        migration=recording_job("migration", order, delay=0.05),
        cleanup=recording_job("cleanup", order),
        warm_up=recording_job("warm_up", order, delay=0),
    )
    runner.start()
    await runner.wait()

    assert order.index("warm_up:start") < order.index("migration:end")


@pytest.mark.asyncio
async def test_foreground_run_returns_result(file_session_maker):
    runner = MaintenanceRunner(file_session_maker)
    assert await runner.run_cleanup() == {"books_deleted": 0, "ideas_deleted": 0}
    assert await runner.run_migration() == {"ideas_migrated": 0, "primers_backfilled": 0}


@pytest.mark.asyncio
async def test_cancel_stops_pending_jobs(file_session_maker):
    order = []
    runner = MaintenanceRunner(
        file_session_maker,
        migration=recording_job("migration", order, delay=10),
        cleanup=recording_job("cleanup", order),
        warm_up=recording_job("warm_up", order, delay=10),
    )
    tasks = runner.start()
    await asyncio.sleep(0.01)

    await runner.cancel()

    assert all(t.cancelled() for t in tasks)
    assert runner.tasks == []
    assert runner.failures == {}
    assert "migration:end" not in order
    assert "cleanup:start" not in order


@pytest.mark.asyncio
async def test_foreground_cleanup_waits_for_startup_jobs(file_session_maker):
    order = []
    runner = MaintenanceRunner(
        file_session_maker,
        migration=recording_job("migration", order, delay=0.02),
        cleanup=recording_job("cleanup", order),
        warm_up=recording_job("warm_up", order),
    )
    runner.start()
    task = runner.run_foreground()

    assert task.get_name() == "maintenance.foreground_cleanup"
    assert task in runner.tasks
    await runner.wait()

    assert task.result() == {}
    exclusive = [step for step in order if not step.startswith("warm_up")]
    assert exclusive[:2] == ["migration:start", "migration:end"]
    assert exclusive.count("cleanup:start") == 2
