"""
Event Store service for append-only event logging.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from deepread.kernel.models.event_log import EventLog, EventType

EntityId = Union[uuid.UUID, str]


class EventStore:
    """
    Service for managing the event log.

    Usage:
        event_store = EventStore(session)
        await event_store.log(
            event_type=EventType.PROGRESS_RECORDED,
            entity_type="idea",
            entity_id=idea.id,
            payload={"level": 2, "score": 8},
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: EntityId,
        payload: Optional[Dict[str, Any]] = None,
    ) -> EventLog:
        """
        Add an event to the log.

        The event joins the caller's transaction; the caller flushes/commits.
        """
        event = EventLog(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=str(entity_id),
            payload=self._serialize_payload(payload or {}),
        )
        self.session.add(event)
        return event

    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: EntityId,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100,
    ) -> List[EventLog]:
        """Events for one entity, newest first."""
        query = select(EventLog).where(
            EventLog.entity_type == entity_type,
            EventLog.entity_id == str(entity_id),
        )
        if event_types:
            query = query.where(EventLog.event_type.in_([t.value for t in event_types]))
        query = query.order_by(desc(EventLog.created_at)).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    def _serialize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Ensure payload is JSON-serializable."""
        return {key: self._serialize_value(value) for key, value in payload.items()}

    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return self._serialize_payload(value)
        if isinstance(value, (list, tuple, set)):
            return [self._serialize_value(v) for v in value]
        return value
