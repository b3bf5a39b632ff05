"""
User profile - a single per-user record, created lazily.
"""

import uuid
from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from deepread.kernel.models.base import Base, TimestampMixin, generate_uuid


class UserProfile(Base, TimestampMixin):
    """The learner's profile."""

    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    has_completed_initial_book_selection: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_opened_book_title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
