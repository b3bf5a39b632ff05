"""
Primer Service -- generates one-page primers for ideas with an OpenAI chat model.

The model is asked for a fixed set of "# " headed sections. The response is
parsed line by line into the primer's fields. Older prompt versions produced
Overview / Key Nuances / Dig Deeper sections; those responses still parse and
are stored through the legacy mapping.

Pipeline position:  idea opened -> get_primer() -> (missing) generate_primer()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from deepread.config import get_settings
from deepread.kernel.events.event_store import EventStore
from deepread.kernel.models.base import utcnow
from deepread.kernel.models.event_log import EventType
from deepread.kernel.models.idea import Idea
from deepread.kernel.models.primer import Primer, PrimerLink
from deepread.logging_config import get_logger

logger = get_logger(__name__)


class PrimerGenerationError(Exception):
    """Raised when a primer cannot be generated."""


SYSTEM_PROMPT = (
    "You are an expert summarizer specializing in distilling core ideas from books "
    "into concise primers, like those in book summary apps."
)

_PRIMER_PROMPT = """\
GOAL: Teach "{title}" (from "{book_title}") in one page, ready to use now.

SOURCE: Use only this description; add no outside facts:
{description}

Voice: Mirror the author's diction, cadence, and stance in the description. Reuse key terms verbatim. Vary sentence length. No filler. No meta (don't say "in this primer/section").

Output format - use these exact headings:

# Thesis (<=22 words)
A single, sharp claim that captures the idea's essence.

# Story (80-120 words)
Share a compelling narrative or example that illustrates this idea in action. Use concrete details and make it memorable.

# Examples (1 example, 2-3 sentences, <=320 characters)
- Write one vivid, concrete scenario showing the idea in action.
- Use the shape: Context -> Tension -> Application -> Outcome.
- Include at least one exact term from the description; avoid redefining the idea.

# Use it when... (3 bullets, <=10 words each)
Concrete cues/conditions that signal the idea applies.

# How to apply (3 bullets, <=12 words each, verb-first)
Actionable steps or checks drawn only from the description.

# Edges & limits (2-3 bullets, <=12 words)
Boundaries, exceptions, or trade-offs stated or implied in the description.

# One-line recall (<=14 words)
A memorable line in the author's tone.

# Further learning (3-4 links)
- [Official/book page]: https://amazon.com/<book-slug-or-isbn>
- [In-depth article]: https://<reputable-site>/<book-or-idea-slug>
- [Talk/lecture video]: https://youtube.com/results?search_query=<author+idea+book>
- [Review/critique]: https://<quality-blog>/<book-or-idea-review>

Rules: No repetition across sections. No hedging. Total length <= 240 words.
"""

# Heading prefix -> section key. Checked in order; first match wins.
_SECTION_HEADINGS = [
    ("# thesis", "thesis"),
    ("# story", "story"),
    ("# examples", "examples"),
    ("# use it when", "use_it_when"),
    ("# how to apply", "how_to_apply"),
    ("# edges & limits", "edges_and_limits"),
    ("# one-line recall", "one_line_recall"),
    ("# further learning", "further_learning"),
    ("# overview", "overview"),
    ("# key nuances", "key_nuances"),
    ("# dig deeper", "dig_deeper_links"),
]

# Legacy bold markers, matched anywhere in a line ("1. **Overview**: ...")
_LEGACY_MARKERS = [
    ("**overview**", "overview"),
    ("**key nuances**", "key_nuances"),
    ("**dig deeper", "dig_deeper_links"),
]

_PROSE_SECTIONS = {"thesis", "story", "one_line_recall", "overview"}
_BULLET_SECTIONS = {"use_it_when", "how_to_apply", "edges_and_limits", "key_nuances"}
_LINK_SECTIONS = {"further_learning", "dig_deeper_links"}
_LEGACY_SECTIONS = {"overview", "key_nuances", "dig_deeper_links"}


@dataclass
class ParsedPrimer:
    """Sections recovered from a model response."""

    thesis: str = ""
    story: str = ""
    examples: List[str] = field(default_factory=list)
    use_it_when: List[str] = field(default_factory=list)
    how_to_apply: List[str] = field(default_factory=list)
    edges_and_limits: List[str] = field(default_factory=list)
    one_line_recall: str = ""
    further_learning: List[PrimerLink] = field(default_factory=list)
    overview: str = ""
    key_nuances: List[str] = field(default_factory=list)
    dig_deeper_links: List[PrimerLink] = field(default_factory=list)
    sections_found: List[str] = field(default_factory=list)

    @property
    def is_legacy(self) -> bool:
        return bool(self.sections_found) and all(s in _LEGACY_SECTIONS for s in self.sections_found)


def build_primer_prompt(idea: Idea) -> str:
    return _PRIMER_PROMPT.format(
        title=idea.title,
        book_title=idea.book_title,
        description=idea.description,
    )


def _strip_bullet(line: str) -> Optional[str]:
    if line.startswith("-") or line.startswith("•"):
        return line[1:].strip()
    return None


def parse_link(text: str) -> Optional[PrimerLink]:
    """Parse "[Title]: url" / "Title: url". The scheme defaults to https."""
    if ":" not in text:
        return None
    title, url = text.split(":", 1)
    title = title.strip().replace("[", "").replace("]", "")
    url = url.strip()
    if not url:
        return None
    if not url.startswith("http://") and not url.startswith("https://"):
        url = "https://" + url
    return PrimerLink(title=title, url=url)


def _match_heading(line: str) -> Optional[str]:
    lowered = line.lower()
    for prefix, section in _SECTION_HEADINGS:
        if lowered.startswith(prefix):
            return section
    for marker, section in _LEGACY_MARKERS:
        if marker in lowered:
            return section
    return None


def parse_primer_response(response: str) -> ParsedPrimer:
    """Split a model response into primer sections."""
    parsed = ParsedPrimer()
    prose: Dict[str, List[str]] = {name: [] for name in _PROSE_SECTIONS}
    section = ""

    for raw_line in response.splitlines():
        line = raw_line.strip()
        heading = _match_heading(line)
        if heading is not None:
            section = heading
            if heading not in parsed.sections_found:
                parsed.sections_found.append(heading)
            continue
        if not line or not section or line.startswith("#"):
            continue

        if section in _PROSE_SECTIONS:
            prose[section].append(line)
        elif section == "examples":
            # A single un-bulleted example is kept as-is
            item = _strip_bullet(line)
            parsed.examples.append(item if item is not None else line)
        elif section in _BULLET_SECTIONS:
            item = _strip_bullet(line)
            if item:
                getattr(parsed, section).append(item)
        elif section in _LINK_SECTIONS:
            item = _strip_bullet(line)
            link = parse_link(item) if item else None
            if link is not None:
                getattr(parsed, section).append(link)

    for name, lines in prose.items():
        setattr(parsed, name, " ".join(lines).strip())
    parsed.examples = [e for e in parsed.examples if e]
    return parsed


class PrimerService:
    """
    Generates, fetches and refreshes primers.

    Usage:
        service = PrimerService(session)
        primer = await service.get_primer(idea.id) or await service.generate_primer(idea)
    """

    def __init__(self, session: AsyncSession, client=None):
        self.session = session
        self.settings = get_settings()
        self._client = client
        self.event_store = EventStore(session)

    def _get_client(self):
        if self._client is not None:
            return self._client
        key = (self.settings.openai_api_key or "").strip()
        if not key or key.startswith("sk-your-"):
            raise PrimerGenerationError("OpenAI API key is not configured")
        from openai import AsyncOpenAI
        self._client = AsyncOpenAI(api_key=key)
        return self._client

    async def generate_primer(self, idea: Idea) -> Primer:
        """
        Generate and store a primer for an idea.

        Raises:
            PrimerGenerationError: no API key, the model call failed, or the
                response contained no primer sections
        """
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.settings.primer_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_primer_prompt(idea)},
                ],
                max_tokens=self.settings.primer_max_tokens,
                temperature=self.settings.primer_temperature,
            )
        except Exception as exc:
            logger.error("Primer generation failed for idea %s: %s", idea.id, exc)
            raise PrimerGenerationError(f"Primer generation failed: {exc}") from exc

        content = (response.choices[0].message.content or "").strip()
        parsed = parse_primer_response(content)
        if not parsed.sections_found:
            logger.warning("Primer response for idea %s had no recognisable sections", idea.id)
            raise PrimerGenerationError("Primer response could not be parsed")

        if parsed.is_legacy:
            primer = Primer.from_legacy(
                idea_id=idea.id,
                overview=parsed.overview,
                key_nuances=parsed.key_nuances,
                dig_deeper_links=parsed.dig_deeper_links,
            )
        else:
            primer = Primer.create(
                idea_id=idea.id,
                thesis=parsed.thesis,
                story=parsed.story,
                examples=parsed.examples,
                use_it_when=parsed.use_it_when,
                how_to_apply=parsed.how_to_apply,
                edges_and_limits=parsed.edges_and_limits,
                one_line_recall=parsed.one_line_recall,
                further_learning=parsed.further_learning,
            )
        self.session.add(primer)
        await self.event_store.log(
            event_type=EventType.PRIMER_GENERATED,
            entity_type="idea",
            entity_id=idea.id,
            payload={"primer_id": primer.id, "legacy": parsed.is_legacy, "model": self.settings.primer_model},
        )
        await self.session.flush()
        set_committed_value(idea, "primer", primer)

        logger.info(
            "Primer generated for idea %s: %d use-when, %d how-to, %d edges, %d links",
            idea.id,
            len(primer.use_it_when),
            len(primer.how_to_apply),
            len(primer.edges_and_limits),
            len(primer.further_learning),
        )
        return primer

    async def get_primer(self, idea_id: str) -> Optional[Primer]:
        """The idea's primer, with its access time updated. Legacy-only rows are back-filled."""
        result = await self.session.execute(select(Primer).where(Primer.idea_id == idea_id))
        primer = result.scalar_one_or_none()
        if primer is None:
            return None
        if primer.backfill_from_legacy():
            logger.debug("Back-filled legacy primer for idea %s", idea_id)
        primer.last_accessed = utcnow()
        await self.session.flush()
        return primer

    async def refresh_primer(self, idea: Idea) -> Primer:
        """Delete the idea's primer (if any) and generate a new one."""
        self._get_client()
        result = await self.session.execute(select(Primer).where(Primer.idea_id == idea.id))
        existing = result.scalar_one_or_none()
        if existing is not None:
            await self.session.delete(existing)
            await self.session.flush()
            set_committed_value(idea, "primer", None)
        return await self.generate_primer(idea)

    async def backfill_legacy_primers(self) -> int:
        """Back-fill every stored primer that carries only legacy content. Returns the count."""
        result = await self.session.execute(select(Primer))
        count = 0
        for primer in result.scalars().all():
            if primer.backfill_from_legacy():
                count += 1
        if count:
            await self.session.flush()
            logger.info("Back-filled %d legacy primers", count)
        return count
