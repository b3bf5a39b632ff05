"""
Book schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from deepread.schemas.idea import IdeaResponse


class BookCreate(BaseModel):
    """Book creation request. An existing book with a matching title is returned instead."""

    title: str = Field(..., min_length=1, max_length=500)
    author: Optional[str] = Field(None, max_length=255)


class BookUpdate(BaseModel):
    """Book update request."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, max_length=255)


class BookResponse(BaseModel):
    """Book list item response."""

    id: uuid.UUID
    title: str
    author: Optional[str]
    book_number: int
    idea_count: int = 0
    created_at: datetime
    last_accessed: datetime

    class Config:
        from_attributes = True


class MasterySummaryResponse(BaseModel):
    total_ideas: int
    not_started: int
    in_progress: int
    mastered: int


class BookDetailResponse(BookResponse):
    """Book with its ideas."""

    ideas: List[IdeaResponse] = []
    mastery: Optional[MasterySummaryResponse] = None
