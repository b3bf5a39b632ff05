"""
Mastery scoring rule.

A practice attempt is scored on a 0-10 scale at one of three difficulty
levels. The score and the level it was earned at map to a mastery level
(0-3) through a fixed table:

    level          score >= 8   score >= 6   otherwise
    1 (Do)             1            0            0
    2 (Question)       2            1            0
    3 (Reinvent)       3            2            1
    anything else      0            0            0
"""

from enum import IntEnum

PASS_THRESHOLD = 6
EXCELLENT_THRESHOLD = 8

MAX_MASTERY_LEVEL = 3


class PracticeLevel(IntEnum):
    """Difficulty levels an idea is practiced at."""
    DO = 1
    QUESTION = 2
    REINVENT = 3

    @property
    def display_name(self) -> str:
        return _LEVEL_NAMES[self]


_LEVEL_NAMES = {
    PracticeLevel.DO: "Do",
    PracticeLevel.QUESTION: "Question",
    PracticeLevel.REINVENT: "Reinvent",
}

# level -> (mastery when score >= 8, when score >= 6, otherwise)
_MASTERY_TABLE = {
    PracticeLevel.DO: (1, 0, 0),
    PracticeLevel.QUESTION: (2, 1, 0),
    PracticeLevel.REINVENT: (3, 2, 1),
}


def calculate_mastery_level(score: int, level: int) -> int:
    """Map a score earned at a difficulty level to a mastery level. Unknown levels give 0."""
    row = _MASTERY_TABLE.get(level)
    if row is None:
        return 0
    excellent, passed, failed = row
    if score >= EXCELLENT_THRESHOLD:
        return excellent
    if score >= PASS_THRESHOLD:
        return passed
    return failed


def level_name(level: int) -> str:
    """Human-readable name for a difficulty level."""
    try:
        return PracticeLevel(level).display_name
    except ValueError:
        return "Unknown"
