"""Detect modules whose files changed within a time window and reload them."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from modwatch.reload.errors import EvictionError, ModuleLoadError, StatError
from modwatch.reload.registry import LoadedUnit, ModuleRegistry, SysModulesRegistry, file_mtime

logger = logging.getLogger(__name__)


class ScanStatus(str, Enum):
    """Outcome of scanning one module."""

    RELOADED = "reloaded"
    UNCHANGED = "unchanged"
    MISSING = "missing"
    STAT_ERROR = "stat_error"
    RELOAD_ERROR = "reload_error"


@dataclass
class ScanOutcome:
    """What happened to one module during a scan."""

    module: str
    path: str
    status: ScanStatus
    error: str | None = None

    @property
    def notable(self) -> bool:
        """True for outcomes that produce a report."""
        return self.status in (ScanStatus.RELOADED, ScanStatus.STAT_ERROR, ScanStatus.RELOAD_ERROR)


class ModuleScanner:
    """Compares module file mtimes against a half-open window ``[start, end)``.

    A file modified exactly at ``end`` belongs to the next window, so
    consecutive windows sharing a boundary see every change exactly once.
    """

    def __init__(
        self,
        registry: ModuleRegistry | None = None,
        stat: Callable[[str], float] | None = None,
    ):
        self.registry = registry or SysModulesRegistry()
        self.stat = stat or file_mtime

    def scan(self, start: float, end: float) -> list[ScanOutcome]:
        """Reload every module whose backing file changed in ``[start, end)``.

        Args:
            start: Lower bound (inclusive), the previous watermark.
            end: Upper bound (exclusive), the current time.

        Returns:
            One outcome per module with a backing file.
        """
        if start > end:
            raise ValueError(f"Scan window is inverted: {start} > {end}")

        outcomes: list[ScanOutcome] = []
        for unit in self.registry.loaded_units():
            if unit.path is None:
                continue
            outcomes.append(self._check(unit, start, end))
        return outcomes

    def _check(self, unit: LoadedUnit, start: float, end: float) -> ScanOutcome:
        try:
            mtime = self.stat(unit.path)
        except FileNotFoundError:
            logger.debug(f"Backing file of {unit.name} is gone: {unit.path}")
            return ScanOutcome(unit.name, unit.path, ScanStatus.MISSING)
        except OSError as e:
            error = StatError(unit.path, e.strerror or str(e))
            logger.error(str(error))
            return ScanOutcome(unit.name, unit.path, ScanStatus.STAT_ERROR, error=str(error))

        if start <= mtime < end:
            return self.reload(unit)
        return ScanOutcome(unit.name, unit.path, ScanStatus.UNCHANGED)

    def reload(self, unit: LoadedUnit) -> ScanOutcome:
        """Evict ``unit`` and load it fresh.

        A failed load leaves the module evicted until its file is fixed and
        picked up by a later scan.
        """
        # TODO: snapshot the evicted module and restore it when the load fails
        try:
            self.registry.evict(unit.name)
        except EvictionError as e:
            logger.error(str(e))
        except Exception as e:
            logger.error(str(EvictionError(unit.name, str(e))))

        try:
            self.registry.load(unit.name)
        except Exception as e:
            error = e if isinstance(e, ModuleLoadError) else ModuleLoadError(unit.name, str(e))
            logger.error(str(error))
            return ScanOutcome(unit.name, unit.path, ScanStatus.RELOAD_ERROR, error=error.reason)

        logger.info(f"Module {unit.name} has been reloaded.")
        return ScanOutcome(unit.name, unit.path, ScanStatus.RELOADED)
