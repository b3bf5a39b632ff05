"""
Practice session schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from deepread.kernel.models.practice_session import (
    PracticeSessionStatus,
    PracticeSessionType,
    TestType,
)


class PracticeSessionCreate(BaseModel):
    """Start a practice session for an idea."""

    idea_id: str = Field(..., min_length=1, max_length=32)
    type: PracticeSessionType = PracticeSessionType.LESSON_PRACTICE
    review_item_ids: Optional[List[uuid.UUID]] = None
    test_type: Optional[TestType] = None


class PracticeSessionTransition(BaseModel):
    status: PracticeSessionStatus


class TestResponse(BaseModel):
    """Test attached to a session."""

    __test__ = False

    id: uuid.UUID
    idea_id: Optional[str]
    idea_title: str
    book_title: str
    test_type: TestType
    created_at: datetime
    scheduled_for: Optional[datetime] = None

    class Config:
        from_attributes = True


class PracticeSessionResponse(BaseModel):
    """Practice session response."""

    id: uuid.UUID
    idea_id: str
    book_id: str
    type: PracticeSessionType
    status: PracticeSessionStatus
    config_version: int
    review_item_ids: Optional[List[uuid.UUID]] = None
    test: Optional[TestResponse] = None
    created_at: datetime
    updated_at: datetime
