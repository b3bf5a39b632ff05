"""
Streak schemas.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel


class StreakResponse(BaseModel):
    current_streak: int
    best_streak: int
    last_active_day: Optional[date] = None
    is_lit_today: bool = False


class ActivityRequest(BaseModel):
    """Activity for a given day (defaults to today)."""

    day: Optional[date] = None


class ActivityResponse(BaseModel):
    marked: bool
    streak: StreakResponse
