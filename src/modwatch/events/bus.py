"""Delivery of reloader events to in-process listeners."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from modwatch.events.types import Event, EventType

logger = logging.getLogger(__name__)

Listener = Callable[[Event], Awaitable[None] | None]


class EventBus:
    """Hands every event the supervisor emits to the registered listeners.

    Listeners run on the supervisor's task, in registration order, and may be
    plain functions or coroutine functions. A listener that raises is logged
    and skipped so reporting never breaks a tick.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        """Register a listener for all future events."""
        self._listeners.append(listener)

    async def emit(
        self,
        event_type: EventType,
        module: str | None = None,
        path: str | None = None,
        error: str | None = None,
    ) -> Event:
        """Build an event and deliver it to every listener.

        Returns:
            The delivered event
        """
        event = Event(type=event_type, module=module, path=path, error=error)
        logger.debug(f"Emitting event: {event.type.value} {module or ''}".rstrip())

        for listener in self._listeners:
            try:
                result = listener(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Event listener error: {e}")

        return event
