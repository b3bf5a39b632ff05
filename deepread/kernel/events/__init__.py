"""Event log service."""

from deepread.kernel.events.event_store import EventStore

__all__ = ["EventStore"]
