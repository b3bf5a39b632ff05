"""
Profile schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    """Profile update request. A blank name is rejected."""

    name: Optional[str] = Field(None, max_length=255)
    has_completed_initial_book_selection: Optional[bool] = None
    last_opened_book_title: Optional[str] = Field(None, max_length=500)


class ProfileResponse(BaseModel):
    """Profile response."""

    id: uuid.UUID
    name: str
    has_completed_initial_book_selection: bool
    last_opened_book_title: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
