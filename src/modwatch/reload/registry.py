"""Access to the process's loaded modules.

The scanner never touches ``sys.modules`` directly; it goes through a
``ModuleRegistry`` so hosts and tests can substitute their own view of what
is loaded and how it gets loaded.
"""

import importlib
import importlib.util
import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from modwatch.reload.errors import EvictionError, ModuleLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedUnit:
    """A loaded module and the file it was loaded from."""

    name: str
    path: str | None  # None for built-in and namespace modules


def file_mtime(path: str) -> float:
    """Return the modification time of ``path`` in epoch seconds.

    Raises:
        FileNotFoundError: If the file no longer exists.
        OSError: For any other filesystem failure.
    """
    return Path(path).stat().st_mtime


class ModuleRegistry(ABC):
    """Enumerates, evicts and loads code units."""

    @abstractmethod
    def loaded_units(self) -> list[LoadedUnit]:
        """Return every currently loaded unit. Called once per tick."""
        ...

    @abstractmethod
    def evict(self, name: str) -> None:
        """Drop the loaded version of ``name``. Evicting an absent unit is a no-op.

        Raises:
            EvictionError: If the unit cannot be removed.
        """
        ...

    @abstractmethod
    def load(self, name: str) -> None:
        """Load ``name`` fresh from its backing file.

        Raises:
            ModuleLoadError: If loading fails.
        """
        ...


class SysModulesRegistry(ModuleRegistry):
    """Registry backed by ``sys.modules`` and ``importlib``.

    Eviction removes the module object from ``sys.modules`` so the following
    import executes the source again into a brand new module object. Code that
    still holds a reference to the old module keeps seeing the old version.
    """

    def __init__(self, packages: Iterable[str] | None = None):
        self.packages = list(packages) if packages else []

    def _is_watched(self, name: str) -> bool:
        if name == "__main__":
            return False
        if not self.packages:
            return True
        return any(name == pkg or name.startswith(f"{pkg}.") for pkg in self.packages)

    def loaded_units(self) -> list[LoadedUnit]:
        units: list[LoadedUnit] = []

        # Snapshot: reloads triggered by this scan mutate sys.modules
        for name, module in list(sys.modules.items()):
            if module is None or not self._is_watched(name):
                continue
            path = getattr(module, "__file__", None)
            units.append(LoadedUnit(name=name, path=path if isinstance(path, str) else None))

        return units

    def evict(self, name: str) -> None:
        try:
            sys.modules.pop(name, None)
        except Exception as e:
            raise EvictionError(name, str(e)) from e
        logger.debug(f"Evicted module {name}")

    def load(self, name: str) -> None:
        importlib.invalidate_caches()
        try:
            self._discard_bytecode(name)
            importlib.import_module(name)
        except ModuleLoadError:
            raise
        except Exception as e:
            raise ModuleLoadError(name, f"{type(e).__name__}: {e}") from e

    def _discard_bytecode(self, name: str) -> None:
        """Remove the cached bytecode of ``name`` so the next import compiles the source.

        The cache is keyed on the source mtime in whole seconds and its size, so a
        same-sized edit within the same second would otherwise import the old code.
        """
        spec = importlib.util.find_spec(name)
        if spec is None or not spec.cached or not (spec.origin or "").endswith(".py"):
            return

        try:
            Path(spec.cached).unlink(missing_ok=True)
        except OSError as e:
            raise ModuleLoadError(name, f"cannot discard stale bytecode {spec.cached}: {e}") from e
