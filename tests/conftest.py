"""Pytest configuration and fixtures."""

import sys
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from modwatch.reload.errors import ModuleLoadError
from modwatch.reload.registry import LoadedUnit, ModuleRegistry


class FakeRegistry(ModuleRegistry):
    """In-memory registry recording evictions and loads."""

    def __init__(self, units: Iterable[LoadedUnit], failing: Iterable[str] = ()):
        self.units = list(units)
        self.failing = set(failing)
        self.present = {unit.name for unit in self.units}
        self.evicted: list[str] = []
        self.loaded: list[str] = []

    def loaded_units(self) -> list[LoadedUnit]:
        return list(self.units)

    def evict(self, name: str) -> None:
        self.evicted.append(name)
        self.present.discard(name)

    def load(self, name: str) -> None:
        if name in self.failing:
            raise ModuleLoadError(name, "SyntaxError: invalid syntax")
        self.loaded.append(name)
        self.present.add(name)


class FakeStat:
    """Stat callable returning canned mtimes or raising canned errors."""

    def __init__(self, results: dict[str, float | OSError]):
        self.results = results
        self.calls: list[str] = []

    def __call__(self, path: str) -> float:
        self.calls.append(path)
        result = self.results[path]
        if isinstance(result, OSError):
            raise result
        return result


@pytest.fixture
def make_registry() -> Callable[..., FakeRegistry]:
    """Factory for fake registries."""
    return FakeRegistry


@pytest.fixture
def make_stat() -> Callable[..., FakeStat]:
    """Factory for fake stat callables."""
    return FakeStat


@pytest.fixture
def live_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Create an importable package on disk and clean it out of sys.modules afterwards."""
    src_dir = tmp_path / "src"
    pkg_dir = src_dir / "livepkg"
    pkg_dir.mkdir(parents=True)

    (pkg_dir / "__init__.py").write_text('"""Package for live reload tests."""\n')
    module_file = pkg_dir / "behaviors.py"
    module_file.write_text('VERSION = "1.0.0"\n')

    monkeypatch.syspath_prepend(str(src_dir))
    monkeypatch.setattr(sys, "dont_write_bytecode", False)

    yield {
        "src_dir": src_dir,
        "pkg_dir": pkg_dir,
        "module_file": module_file,
        "module_name": "livepkg.behaviors",
        "package_name": "livepkg",
    }

    for name in list(sys.modules):
        if name == "livepkg" or name.startswith("livepkg."):
            del sys.modules[name]
