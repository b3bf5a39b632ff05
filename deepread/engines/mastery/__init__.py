"""
Mastery Engine - practice attempts and derived mastery.

Levels:
- Level 1: Do
- Level 2: Question
- Level 3: Reinvent

Mastery levels:
- 0: not started
- 1: basic
- 2: intermediate
- 3: mastered
"""

from deepread.kernel.scoring import (
    PracticeLevel,
    calculate_mastery_level,
    level_name,
)
from deepread.engines.mastery.progress_tracker import BookMasterySummary, ProgressTracker

__all__ = [
    "PracticeLevel",
    "calculate_mastery_level",
    "level_name",
    "BookMasterySummary",
    "ProgressTracker",
]
