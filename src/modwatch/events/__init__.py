"""Structured reload events for in-process listeners."""

from modwatch.events.bus import EventBus, Listener
from modwatch.events.types import Event, EventType

__all__ = ["Event", "EventBus", "EventType", "Listener"]
