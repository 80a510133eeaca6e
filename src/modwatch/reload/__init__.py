"""Live reload of loaded modules.

- Module registry access (sys.modules / importlib)
- Time-window scanning of backing file mtimes
- Evict-and-load reload per changed module
- Polling supervisor owning the watermark
"""

from modwatch.reload.errors import (
    EvictionError,
    ModuleLoadError,
    ModwatchError,
    StatError,
    TimerError,
)
from modwatch.reload.registry import LoadedUnit, ModuleRegistry, SysModulesRegistry
from modwatch.reload.scanner import ModuleScanner, ScanOutcome, ScanStatus
from modwatch.reload.supervisor import ReloadSupervisor, SupervisorState, WatchConfig, start, stop

__all__ = [
    "EvictionError",
    "LoadedUnit",
    "ModuleLoadError",
    "ModuleRegistry",
    "ModuleScanner",
    "ModwatchError",
    "ReloadSupervisor",
    "ScanOutcome",
    "ScanStatus",
    "StatError",
    "SupervisorState",
    "SysModulesRegistry",
    "TimerError",
    "WatchConfig",
    "start",
    "stop",
]
