"""
Idea and progress schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from deepread.kernel.models.idea import ImportanceLevel


class IdeaCreate(BaseModel):
    """An extracted idea. Legacy ids ("i3") are rewritten to the book-specific form."""

    id: str = Field(..., min_length=1, max_length=32, pattern=r"^(b\d+)?i\d+$")
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    depth_target: int = Field(1, ge=1, le=3)
    importance: Optional[ImportanceLevel] = ImportanceLevel.BUILDING_BLOCK


class IdeasReplaceRequest(BaseModel):
    ideas: List[IdeaCreate]


class IdeaResponse(BaseModel):
    """Idea response."""

    id: str
    book_id: Optional[uuid.UUID]
    title: str
    description: str
    book_title: str
    depth_target: int
    mastery_level: int
    current_level: Optional[int] = None
    last_practiced: Optional[datetime] = None
    importance: Optional[ImportanceLevel] = None
    idea_number: str
    book_number: str
    has_primer: bool = False

    class Config:
        from_attributes = True


class ProgressCreate(BaseModel):
    """A completed practice attempt."""

    level: int = Field(..., ge=1, le=3, description="1 = Do, 2 = Question, 3 = Reinvent")
    score: int = Field(..., ge=0, le=10)
    completed_at: Optional[datetime] = None


class ProgressResponse(BaseModel):
    """Progress response."""

    id: uuid.UUID
    idea_id: str
    level: int
    level_name: str
    score: int
    mastery_level: int
    is_completed: bool
    completed_at: datetime

    class Config:
        from_attributes = True


class ProgressRecordResponse(BaseModel):
    """A recorded attempt and the idea's mastery afterwards."""

    progress: ProgressResponse
    idea_mastery_level: int
