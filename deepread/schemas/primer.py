"""
Primer schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class PrimerLinkSchema(BaseModel):
    title: str
    url: str


class PrimerResponse(BaseModel):
    """Primer response. Legacy fields are included for older clients."""

    id: uuid.UUID
    idea_id: str
    thesis: str
    story: str
    examples: List[str]
    use_it_when: List[str]
    how_to_apply: List[str]
    edges_and_limits: List[str]
    one_line_recall: str
    further_learning: List[PrimerLinkSchema]
    overview: str
    key_nuances: List[str]
    dig_deeper_links: List[PrimerLinkSchema]
    created_at: datetime
    last_accessed: Optional[datetime] = None

    class Config:
        from_attributes = True
