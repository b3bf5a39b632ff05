"""Unit tests for primer parsing and PrimerService."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from deepread.ai.primer_service import (
    PrimerGenerationError,
    PrimerService,
    build_primer_prompt,
    parse_link,
    parse_primer_response,
)
from deepread.kernel.models import EventLog, EventType, Primer


NEW_FORMAT_RESPONSE = """\
# Thesis (<=22 words)
Fast thinking runs the show; slow thinking only checks in when forced.

# Story (80-120 words)
A bat and a ball cost $1.10 in total.
Most people answer ten cents without pausing.

# Examples (1 example, 2-3 sentences, <=320 characters)
A manager hires the candidate who "feels right" and regrets it within a month.

# Use it when...
- A judgement arrives instantly
- Stakes are high
- You feel certain

# How to apply
- Pause before answering
- Write down the base rate
- Ask what would change your mind

# Edges & limits
- Experts in regular environments can trust intuition
- Slowing down costs effort

# One-line recall
Check the answer that came too easily.

# Further learning
- [Official/book page]: https://amazon.com/thinking-fast-and-slow
- [Talk/lecture video]: youtube.com/results?search_query=kahneman+system+1
"""

LEGACY_RESPONSE = """\
**Overview**
People rely on two systems. System 1 is fast and intuitive.

**Key Nuances**
- System 1 is automatic
- System 2 is effortful
- Biases come from substitution
- Anchors distort estimates

**Dig Deeper**
- Book page: amazon.com/tfas
"""


def fake_client(content: str) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        )
    )
    return client


class TestParsing:
    def test_parses_every_new_section(self):
        parsed = parse_primer_response(NEW_FORMAT_RESPONSE)

        assert parsed.thesis == "Fast thinking runs the show; slow thinking only checks in when forced."
        assert parsed.story.startswith("A bat and a ball")
        assert "ten cents" in parsed.story
        assert parsed.examples == [
            'A manager hires the candidate who "feels right" and regrets it within a month.'
        ]
        assert parsed.use_it_when == ["A judgement arrives instantly", "Stakes are high", "You feel certain"]
        assert parsed.how_to_apply[0] == "Pause before answering"
        assert len(parsed.edges_and_limits) == 2
        assert parsed.one_line_recall == "Check the answer that came too easily."
        assert [link.title for link in parsed.further_learning] == ["Official/book page", "Talk/lecture video"]
        assert not parsed.is_legacy

    def test_link_without_scheme_gets_https(self):
        parsed = parse_primer_response(NEW_FORMAT_RESPONSE)
        assert parsed.further_learning[1].url == "https://youtube.com/results?search_query=kahneman+system+1"

    def test_parses_legacy_sections(self):
        parsed = parse_primer_response(LEGACY_RESPONSE)

        assert parsed.is_legacy
        assert parsed.overview == "People rely on two systems. System 1 is fast and intuitive."
        assert len(parsed.key_nuances) == 4
        assert parsed.dig_deeper_links[0].url == "https://amazon.com/tfas"

    def test_parses_numbered_legacy_sections(self):
        parsed = parse_primer_response(
            "1. **Overview**: \n"
            "People rely on two systems.\n"
            "2. **Key Nuances**:\n"
            "- System 1 is automatic\n"
            "3. **Dig Deeper Hyperlinks**:\n"
            "- Book page: amazon.com/thinking\n"
        )

        assert parsed.sections_found == ["overview", "key_nuances", "dig_deeper_links"]
        assert parsed.is_legacy
        assert parsed.overview == "People rely on two systems."
        assert parsed.key_nuances == ["System 1 is automatic"]
        assert parsed.dig_deeper_links[0].url == "https://amazon.com/thinking"

    def test_unrecognised_text_finds_nothing(self):
        parsed = parse_primer_response("Sorry, I can't help with that.")
        assert parsed.sections_found == []
        assert not parsed.is_legacy

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("[Book]: https://example.com/b", ("Book", "https://example.com/b")),
            ("Article: http://example.com/a", ("Article", "http://example.com/a")),
            ("Video: example.com/v", ("Video", "https://example.com/v")),
        ],
    )
    def test_parse_link(self, text, expected):
        link = parse_link(text)
        assert (link.title, link.url) == expected

    @pytest.mark.parametrize("text", ["no separator here", "Title:   "])
    def test_parse_link_rejects(self, text):
        assert parse_link(text) is None

    def test_prompt_includes_idea(self, test_book):
        idea = test_book.ideas[0]
        prompt = build_primer_prompt(idea)
        assert idea.title in prompt
        assert idea.description in prompt
        assert "# One-line recall" in prompt


class TestGeneratePrimer:
    @pytest.mark.asyncio
    async def test_generates_and_stores(self, db_session, test_book):
        idea = test_book.ideas[0]
        client = fake_client(NEW_FORMAT_RESPONSE)
        service = PrimerService(db_session, client=client)

        primer = await service.generate_primer(idea)

        assert primer.idea_id == idea.id
        assert primer.thesis.startswith("Fast thinking")
        # Legacy columns are filled for older clients
        assert primer.overview == primer.thesis
        assert primer.key_nuances == primer.use_it_when + primer.how_to_apply + primer.edges_and_limits
        assert idea.has_primer

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["messages"][0]["role"] == "system"
        assert idea.title in kwargs["messages"][1]["content"]

        events = (await db_session.execute(
            select(EventLog).where(EventLog.event_type == EventType.PRIMER_GENERATED.value)
        )).scalars().all()
        assert len(events) == 1
        assert events[0].entity_id == idea.id

    @pytest.mark.asyncio
    async def test_legacy_response_maps_onto_current_fields(self, db_session, test_book):
        idea = test_book.ideas[1]
        service = PrimerService(db_session, client=fake_client(LEGACY_RESPONSE))

        primer = await service.generate_primer(idea)

        assert primer.thesis == "People rely on two systems"
        assert primer.use_it_when == [
            "System 1 is automatic",
            "System 2 is effortful",
            "Biases come from substitution",
        ]
        assert primer.how_to_apply == ["Anchors distort estimates"]
        assert primer.edges_and_limits == []
        assert primer.further_learning == [{"title": "Book page", "url": "https://amazon.com/tfas"}]

    @pytest.mark.asyncio
    async def test_unparseable_response_raises(self, db_session, test_book):
        service = PrimerService(db_session, client=fake_client("I cannot do that."))

        with pytest.raises(PrimerGenerationError):
            await service.generate_primer(test_book.ideas[0])

        result = await db_session.execute(select(Primer))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_model_failure_raises(self, db_session, test_book):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=RuntimeError("rate limited"))
        service = PrimerService(db_session, client=client)

        with pytest.raises(PrimerGenerationError, match="rate limited"):
            await service.generate_primer(test_book.ideas[0])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "sk-your-openai-key"])
    async def test_missing_key_raises(self, db_session, test_book, key):
        service = PrimerService(db_session)
        service.settings = service.settings.model_copy(update={"openai_api_key": key})

        with pytest.raises(PrimerGenerationError, match="not configured"):
            await service.generate_primer(test_book.ideas[0])


class TestGetAndRefresh:
    @pytest.mark.asyncio
    async def test_get_missing_primer(self, db_session, test_book):
        assert await PrimerService(db_session).get_primer(test_book.ideas[0].id) is None

    @pytest.mark.asyncio
    async def test_get_touches_and_backfills(self, db_session, test_book):
        idea = test_book.ideas[0]
        legacy = Primer(
            idea_id=idea.id,
            overview="Anchors pull estimates. Always.",
            key_nuances=["a", "b"],
            dig_deeper_links=[],
        )
        db_session.add(legacy)
        await db_session.flush()

        primer = await PrimerService(db_session).get_primer(idea.id)

        assert primer.thesis == "Anchors pull estimates"
        assert primer.use_it_when == ["a", "b"]
        assert primer.last_accessed is not None

    @pytest.mark.asyncio
    async def test_refresh_replaces_primer(self, db_session, test_book):
        idea = test_book.ideas[0]
        service = PrimerService(db_session, client=fake_client(LEGACY_RESPONSE))
        first = await service.generate_primer(idea)

        service._client = fake_client(NEW_FORMAT_RESPONSE)
        second = await service.refresh_primer(idea)

        assert second.id != first.id
        stored = (await db_session.execute(select(Primer).where(Primer.idea_id == idea.id))).scalars().all()
        assert [p.id for p in stored] == [second.id]
        assert stored[0].thesis.startswith("Fast thinking")

    @pytest.mark.asyncio
    async def test_refresh_without_primer_generates(self, db_session, test_book):
        idea = test_book.ideas[2]
        service = PrimerService(db_session, client=fake_client(NEW_FORMAT_RESPONSE))

        primer = await service.refresh_primer(idea)

        assert primer.idea_id == idea.id

    @pytest.mark.asyncio
    async def test_refresh_without_key_keeps_existing(self, db_session, test_book):
        idea = test_book.ideas[0]
        await PrimerService(db_session, client=fake_client(NEW_FORMAT_RESPONSE)).generate_primer(idea)

        service = PrimerService(db_session)
        service.settings = service.settings.model_copy(update={"openai_api_key": ""})
        with pytest.raises(PrimerGenerationError):
            await service.refresh_primer(idea)

        assert await PrimerService(db_session).get_primer(idea.id) is not None

    @pytest.mark.asyncio
    async def test_backfill_legacy_primers(self, db_session, test_book):
        for idea in test_book.ideas[:2]:
            db_session.add(Primer(idea_id=idea.id, overview="Legacy. Text.", key_nuances=["x"], dig_deeper_links=[]))
        await db_session.flush()

        service = PrimerService(db_session)
        assert await service.backfill_legacy_primers() == 2
        assert await service.backfill_legacy_primers() == 0
