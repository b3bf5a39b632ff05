"""
Primer model - a structured explanatory brief attached to an idea.

Primers were first stored as overview / key nuances / dig-deeper links.
The current structure splits that content into thesis, usage conditions,
application steps and limitations. Both shapes are kept on the row: the
legacy columns are derived from the new ones on creation, and the new
columns are derived from the legacy ones when only legacy data exists.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deepread.kernel.models.base import Base, generate_uuid, utcnow

if TYPE_CHECKING:
    from deepread.kernel.models.idea import Idea

NUANCE_GROUP_SIZE = 3


class PrimerLink(BaseModel):
    """A further-reading link."""

    title: str
    url: str


def _links_to_json(links: Sequence[Any]) -> List[Dict[str, str]]:
    return [PrimerLink.model_validate(link).model_dump() for link in links]


def first_sentence(text: str) -> str:
    """Everything before the first period, or the whole text when there is none."""
    return text.split(".", 1)[0]


def map_legacy_fields(
    overview: str,
    key_nuances: Sequence[str],
    dig_deeper_links: Sequence[Any],
) -> Dict[str, Any]:
    """
    Derive the current primer fields from legacy primer content.

    Key nuances are split positionally into three groups of at most three
    items (use it when / how to apply / edges and limits). The mapping is
    pure, so applying it twice to the same input yields the same fields.
    """
    nuances = list(key_nuances)
    summary = first_sentence(overview)
    size = NUANCE_GROUP_SIZE
    return {
        "thesis": summary,
        "story": "",
        "examples": [],
        "use_it_when": nuances[0:size],
        "how_to_apply": nuances[size:2 * size],
        "edges_and_limits": nuances[2 * size:3 * size],
        "one_line_recall": summary,
        "further_learning": _links_to_json(dig_deeper_links),
    }


class Primer(Base):
    """Primer for a single idea (one-to-one, deleted with the idea)."""

    __tablename__ = "primers"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    idea_id: Mapped[str] = mapped_column(
        ForeignKey("ideas.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        unique=True,
    )

    thesis: Mapped[str] = mapped_column(Text, nullable=False, default="")
    story: Mapped[str] = mapped_column(Text, nullable=False, default="")
    examples: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    use_it_when: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    how_to_apply: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    edges_and_limits: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    one_line_recall: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    further_learning: Mapped[List[Dict[str, str]]] = mapped_column(JSON, nullable=False, default=list)

    # Deprecated: kept for clients and rows written before the current structure
    overview: Mapped[str] = mapped_column(Text, nullable=False, default="")
    key_nuances: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    dig_deeper_links: Mapped[List[Dict[str, str]]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    last_accessed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    idea: Mapped["Idea"] = relationship("Idea", back_populates="primer")

    @classmethod
    def create(
        cls,
        idea_id: str,
        thesis: str,
        story: str = "",
        examples: Sequence[str] = (),
        use_it_when: Sequence[str] = (),
        how_to_apply: Sequence[str] = (),
        edges_and_limits: Sequence[str] = (),
        one_line_recall: str = "",
        further_learning: Sequence[Any] = (),
    ) -> "Primer":
        """Build a primer from current fields, filling the legacy columns too."""
        links = _links_to_json(further_learning)
        return cls(
            id=generate_uuid(),
            idea_id=idea_id,
            thesis=thesis,
            story=story,
            examples=list(examples),
            use_it_when=list(use_it_when),
            how_to_apply=list(how_to_apply),
            edges_and_limits=list(edges_and_limits),
            one_line_recall=one_line_recall,
            further_learning=links,
            overview=thesis,
            key_nuances=list(use_it_when) + list(how_to_apply) + list(edges_and_limits),
            dig_deeper_links=list(links),
            created_at=utcnow(),
        )

    @classmethod
    def from_legacy(
        cls,
        idea_id: str,
        overview: str,
        key_nuances: Sequence[str],
        dig_deeper_links: Sequence[Any],
    ) -> "Primer":
        """Build a primer from legacy content, mapping it onto the current fields."""
        return cls(
            id=generate_uuid(),
            idea_id=idea_id,
            overview=overview,
            key_nuances=list(key_nuances),
            dig_deeper_links=_links_to_json(dig_deeper_links),
            created_at=utcnow(),
            **map_legacy_fields(overview, key_nuances, dig_deeper_links),
        )

    @property
    def has_only_legacy_content(self) -> bool:
        current = (
            self.thesis,
            self.use_it_when,
            self.how_to_apply,
            self.edges_and_limits,
            self.one_line_recall,
        )
        legacy = (self.overview, self.key_nuances)
        return not any(current) and any(legacy)

    def backfill_from_legacy(self) -> bool:
        """Fill current fields from legacy ones when only legacy data is stored. Returns True if changed."""
        if not self.has_only_legacy_content:
            return False
        fields = map_legacy_fields(self.overview, self.key_nuances or [], self.dig_deeper_links or [])
        for name, value in fields.items():
            setattr(self, name, value)
        return True

    @property
    def further_learning_links(self) -> List[PrimerLink]:
        return [PrimerLink.model_validate(link) for link in self.further_learning or []]
