"""
Append-only event log.

Domain mutations (recorded attempts, session transitions, cleanup runs,
sign-ins) and background maintenance failures are written here so they stay
observable after the fact.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, JSON, String, func
from sqlalchemy.orm import Mapped, mapped_column

from deepread.kernel.models.base import Base, generate_uuid, utcnow


class EventType(str, Enum):
    """All event types for the event log."""

    # Library events
    BOOK_CREATED = "book.created"
    BOOK_UPDATED = "book.updated"
    BOOK_DELETED = "book.deleted"
    IDEAS_SAVED = "book.ideas_saved"

    # Learning events
    PROGRESS_RECORDED = "progress.recorded"
    PRIMER_GENERATED = "primer.generated"
    PRACTICE_SESSION_CREATED = "practice_session.created"
    PRACTICE_SESSION_STATUS_CHANGED = "practice_session.status_changed"
    STREAK_EXTENDED = "streak.extended"

    # Profile / auth events
    PROFILE_UPDATED = "profile.updated"
    USER_SIGNED_IN = "auth.signed_in"
    USER_SIGNED_OUT = "auth.signed_out"

    # Maintenance events
    MAINTENANCE_COMPLETED = "maintenance.completed"
    MAINTENANCE_FAILED = "maintenance.failed"


class EventLog(Base):
    """
    Immutable event record.

    This table is append-only - no updates or deletes.
    """

    __tablename__ = "event_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )

    event_type: Mapped[EventType] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    # Entity reference (idea ids are strings, everything else is a UUID)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_event_logs_entity", "entity_type", "entity_id"),
    )

    def __repr__(self) -> str:
        return f"<EventLog {self.event_type} {self.entity_type}:{self.entity_id}>"
