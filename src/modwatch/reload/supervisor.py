"""Polling loop that drives the module scanner on a fixed cadence.

The supervisor owns the watermark ``_last``. Each tick scans ``[_last, now)``
and then moves ``_last`` to ``now``, so consecutive ticks cover the timeline
without gaps or overlap. Ticks run one at a time on a single asyncio task;
a slow scan delays the following ticks rather than overlapping with them.

Stat and load calls run synchronously with no timeout. A module whose import
blocks will block the event loop for as long as it takes.
"""

import asyncio
import contextlib
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from modwatch import __version__
from modwatch.events import EventBus, EventType
from modwatch.reload.errors import TimerError
from modwatch.reload.registry import ModuleRegistry, SysModulesRegistry
from modwatch.reload.scanner import ModuleScanner, ScanOutcome, ScanStatus

logger = logging.getLogger(__name__)

STOPPED = "stopped"

_OUTCOME_EVENTS = {
    ScanStatus.RELOADED: EventType.MODULE_RELOADED,
    ScanStatus.RELOAD_ERROR: EventType.MODULE_RELOAD_FAILED,
    ScanStatus.STAT_ERROR: EventType.MODULE_STAT_FAILED,
}


class SupervisorState(str, Enum):
    """Lifecycle of the reload loop."""

    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class WatchConfig:
    """Settings for a reload supervisor."""

    # Seconds between ticks, fixed for the life of the loop
    interval: float = 1.0

    # Restrict scanning to these packages and their submodules (empty = all)
    packages: list[str] = field(default_factory=list)

    # Number of notable outcomes kept for get_reload_history()
    history_size: int = 50


class ReloadSupervisor:
    """Runs ``ModuleScanner.scan`` every ``interval`` seconds.

    Args:
        scanner: Scanner to drive. Built from ``registry`` when omitted.
        registry: Registry for the default scanner.
        interval: Seconds between ticks.
        clock: Returns the current time in the same base as file mtimes.
        event_bus: Optional bus receiving lifecycle and reload events.
        history_size: Number of notable outcomes kept in memory.
    """

    def __init__(
        self,
        scanner: ModuleScanner | None = None,
        registry: ModuleRegistry | None = None,
        interval: float = 1.0,
        clock: Callable[[], float] = time.time,
        event_bus: EventBus | None = None,
        history_size: int = 50,
    ):
        if interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval}")

        self.scanner = scanner or ModuleScanner(registry or SysModulesRegistry())
        self.interval = interval
        self.clock = clock
        self.event_bus = event_bus

        self._state = SupervisorState.STOPPED
        self._last: float = 0.0
        self._timer: asyncio.Task | None = None
        self._history: deque[ScanOutcome] = deque(maxlen=history_size)

    @classmethod
    def from_config(cls, config: WatchConfig, event_bus: EventBus | None = None) -> "ReloadSupervisor":
        """Build a supervisor over ``sys.modules`` from a WatchConfig."""
        return cls(
            registry=SysModulesRegistry(config.packages),
            interval=config.interval,
            event_bus=event_bus,
            history_size=config.history_size,
        )

    @property
    def state(self) -> SupervisorState:
        return self._state

    async def start(self) -> asyncio.Task:
        """Arm the timer and begin watching.

        Changes made before this call are never picked up: the watermark
        starts at the current time.

        Returns:
            The timer task. Starting an already running supervisor returns
            the existing task.
        """
        if self._state == SupervisorState.RUNNING and self._timer is not None:
            logger.warning("Reloader already running, ignoring start")
            return self._timer

        self._last = self.clock()
        self._timer = asyncio.create_task(self._timer_loop())
        self._state = SupervisorState.RUNNING
        logger.info(f"Reloader started, polling every {self.interval}s (modwatch v{__version__})")

        if self.event_bus:
            await self.event_bus.emit(EventType.RELOADER_STARTED)

        return self._timer

    async def stop(self) -> str:
        """Disarm the timer.

        A scan already in progress runs to completion; no further scans start.

        Returns:
            Always ``"stopped"``, even if the timer was not armed.
        """
        try:
            timer = self._cancel_timer()
        except TimerError as e:
            logger.error(str(e))
            return STOPPED

        with contextlib.suppress(asyncio.CancelledError):
            await timer

        logger.info("Reloader stopped")
        if self.event_bus:
            await self.event_bus.emit(EventType.RELOADER_STOPPED)

        return STOPPED

    def _cancel_timer(self) -> asyncio.Task:
        timer = self._timer
        self._timer = None
        self._state = SupervisorState.STOPPED

        if timer is None or timer.done():
            raise TimerError("timer is not armed")

        timer.cancel()
        return timer

    async def _timer_loop(self) -> None:
        """Fire a tick every interval until cancelled."""
        loop = asyncio.get_running_loop()
        deadline = loop.time()

        while True:
            deadline += self.interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))

            try:
                await self._tick()
            except Exception as e:
                logger.error(f"Reload tick error: {e}")

    async def _tick(self) -> list[ScanOutcome]:
        """Scan ``[last, now)`` and advance the watermark to ``now``."""
        # A wall clock stepping backwards must not move the watermark back
        now = max(self.clock(), self._last)

        outcomes: list[ScanOutcome] = []
        try:
            outcomes = self.scanner.scan(self._last, now)
        except Exception as e:
            logger.error(f"Module scan failed: {e}")
        finally:
            self._last = now

        await self._report(outcomes)
        return outcomes

    async def _report(self, outcomes: list[ScanOutcome]) -> None:
        notable = [o for o in outcomes if o.notable]
        self._history.extend(notable)

        if not self.event_bus:
            return

        for outcome in notable:
            await self.event_bus.emit(
                _OUTCOME_EVENTS[outcome.status],
                module=outcome.module,
                path=outcome.path,
                error=outcome.error,
            )

    def get_reload_history(self, limit: int = 10) -> list[ScanOutcome]:
        """Get the most recent notable outcomes, oldest first.

        Args:
            limit: Maximum number of outcomes to return.
        """
        if limit <= 0:
            return []
        return list(self._history)[-limit:]


_default_supervisor: ReloadSupervisor | None = None


async def start(config: WatchConfig | None = None) -> asyncio.Task:
    """Start the process-wide reloader.

    ``config`` only applies the first time; later calls reuse the existing
    supervisor.
    """
    global _default_supervisor
    if _default_supervisor is None:
        _default_supervisor = ReloadSupervisor.from_config(config or WatchConfig())
    return await _default_supervisor.start()


async def stop() -> str:
    """Stop the process-wide reloader."""
    if _default_supervisor is None:
        logger.error(str(TimerError("reloader was never started")))
        return STOPPED
    return await _default_supervisor.stop()
