"""Errors raised while scanning and reloading modules.

None of these escape a tick: the scanner and supervisor catch them at the
smallest scope and turn them into log reports.
"""


class ModwatchError(Exception):
    """Base class for reloader errors."""


class StatError(ModwatchError):
    """Raised when a module's backing file cannot be inspected."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Error reading {path}'s file info: {reason}")


class EvictionError(ModwatchError):
    """Raised when a module cannot be removed from the module registry."""

    def __init__(self, module: str, reason: str):
        self.module = module
        self.reason = reason
        super().__init__(f"Error evicting the module {module}: {reason}")


class ModuleLoadError(ModwatchError):
    """Raised when a module fails to load fresh from its backing file."""

    def __init__(self, module: str, reason: str):
        self.module = module
        self.reason = reason
        super().__init__(f"Error reloading the module {module}: {reason}")


class TimerError(ModwatchError):
    """Raised when cancelling a timer that is not armed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot cancel reload timer: {reason}")
