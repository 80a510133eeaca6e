"""Event types published by the reload supervisor."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of events published by the reloader."""

    # Supervisor lifecycle
    RELOADER_STARTED = "reloader.started"
    RELOADER_STOPPED = "reloader.stopped"

    # Per-module scan outcomes worth reporting
    MODULE_RELOADED = "module.reloaded"
    MODULE_RELOAD_FAILED = "module.reload_failed"
    MODULE_STAT_FAILED = "module.stat_failed"


class Event(BaseModel):
    """One reloader event. Module fields are unset for lifecycle events."""

    type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    module: str | None = None
    path: str | None = None
    error: str | None = None
