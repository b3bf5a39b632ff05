"""Unit tests for ProfileService."""

import pytest

from deepread.engines.profile.profile_service import ProfileService


@pytest.mark.asyncio
async def test_profile_created_lazily_once(db_session):
    service = ProfileService(db_session)
    assert await service.get_profile() is None

    first = await service.ensure_profile()
    second = await service.ensure_profile()

    assert first.id == second.id
    assert first.name == ""
    assert first.has_completed_initial_book_selection is False


@pytest.mark.asyncio
async def test_update_name_trims(db_session):
    profile = await ProfileService(db_session).update_name("  Ada  ")
    assert profile.name == "Ada"


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "\n\t"])
async def test_blank_name_rejected(db_session, name):
    service = ProfileService(db_session)
    await service.update_name("Ada")
    with pytest.raises(ValueError):
        await service.update_name(name)
    assert (await service.ensure_profile()).name == "Ada"


@pytest.mark.asyncio
async def test_update_bumps_updated_at(db_session):
    service = ProfileService(db_session)
    profile = await service.ensure_profile()
    before = profile.updated_at

    profile = await service.update_name("Grace")

    assert profile.updated_at >= before


@pytest.mark.asyncio
async def test_update_preferences(db_session):
    profile = await ProfileService(db_session).update_preferences(
        has_completed_initial_book_selection=True,
        last_opened_book_title="Deep Work",
    )
    assert profile.has_completed_initial_book_selection is True
    assert profile.last_opened_book_title == "Deep Work"
