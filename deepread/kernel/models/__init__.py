"""
Kernel Data Models

SQLAlchemy models for the learning store. Aggregates own their children:
a Book owns its Ideas; an Idea owns its Progress rows, Primer and Tests;
a PracticeSession owns its Test. Deleting an owner deletes what it owns.
"""

from deepread.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from deepread.kernel.models.book import Book
from deepread.kernel.models.idea import (
    Idea,
    ImportanceLevel,
    book_specific_idea_id,
    is_book_specific_id,
)
from deepread.kernel.models.progress import Progress
from deepread.kernel.models.primer import Primer, PrimerLink, map_legacy_fields
from deepread.kernel.models.practice_session import (
    PracticeSession,
    PracticeSessionStatus,
    PracticeSessionType,
    Test,
    TestType,
)
from deepread.kernel.models.user_profile import UserProfile
from deepread.kernel.models.streak import StreakState, STREAK_SINGLETON_ID
from deepread.kernel.models.auth_credential import AuthCredential
from deepread.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # Library
    "Book",
    "Idea",
    "ImportanceLevel",
    "book_specific_idea_id",
    "is_book_specific_id",
    # Learning
    "Progress",
    "Primer",
    "PrimerLink",
    "map_legacy_fields",
    "PracticeSession",
    "PracticeSessionStatus",
    "PracticeSessionType",
    "Test",
    "TestType",
    "StreakState",
    "STREAK_SINGLETON_ID",
    # User
    "UserProfile",
    "AuthCredential",
    # Event Log
    "EventLog",
    "EventType",
]
