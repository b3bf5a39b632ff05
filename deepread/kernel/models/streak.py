"""
Streak state - daily practice streak, stored as a single row.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from deepread.kernel.models.base import Base

STREAK_SINGLETON_ID = "streak_singleton"


class StreakState(Base):
    """Deterministic id so a store never holds more than one streak record."""

    __tablename__ = "streak_state"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=STREAK_SINGLETON_ID)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_active_day: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
