"""
Streak Engine - consecutive-day practice streaks.
"""

from deepread.engines.streak.streak_manager import StreakManager

__all__ = ["StreakManager"]
