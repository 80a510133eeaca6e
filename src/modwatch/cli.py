"""Modwatch CLI entry point."""

import asyncio
import importlib
import logging
import pkgutil
import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from modwatch.reload import ModuleScanner, ReloadSupervisor, ScanStatus, SysModulesRegistry, WatchConfig

console = Console()

STATUS_STYLES = {
    ScanStatus.RELOADED: "green",
    ScanStatus.UNCHANGED: "dim",
    ScanStatus.MISSING: "yellow",
    ScanStatus.STAT_ERROR: "red",
    ScanStatus.RELOAD_ERROR: "red",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def import_packages(packages: tuple[str, ...], submodules: bool = False) -> list[str]:
    """Import the named packages so their modules show up in sys.modules.

    Returns:
        Names of the modules that were imported.
    """
    imported: list[str] = []
    for name in packages:
        try:
            module = importlib.import_module(name)
        except Exception as e:
            raise click.ClickException(f"Cannot import {name}: {e}") from e
        imported.append(name)

        if not submodules or not hasattr(module, "__path__"):
            continue

        for info in pkgutil.walk_packages(module.__path__, prefix=f"{name}."):
            try:
                importlib.import_module(info.name)
                imported.append(info.name)
            except Exception as e:
                console.print(f"[yellow]Skipping {info.name}: {e}[/yellow]")

    return imported


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option(
    "--path",
    "extra_paths",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory to prepend to sys.path (repeatable)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, extra_paths: tuple[Path, ...]) -> None:
    """Modwatch - reload changed Python modules in a running process."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)

    for path in reversed(extra_paths):
        sys.path.insert(0, str(path.resolve()))


@cli.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--interval", default=1.0, type=click.FloatRange(min=0, min_open=True), help="Seconds between scans")
@click.option("--submodules", is_flag=True, help="Also import every submodule of each package")
def watch(packages: tuple[str, ...], interval: float, submodules: bool) -> None:
    """Import PACKAGES and reload their modules whenever their files change."""
    imported = import_packages(packages, submodules=submodules)
    config = WatchConfig(interval=interval, packages=list(packages))

    async def run_watch() -> None:
        supervisor = ReloadSupervisor.from_config(config)
        await supervisor.start()
        console.print(f"[bold green]Watching {len(imported)} modules (Ctrl+C to stop)[/bold green]")

        try:
            while True:
                await asyncio.sleep(1)
        finally:
            await supervisor.stop()

    try:
        asyncio.run(run_watch())
    except KeyboardInterrupt:
        console.print("\n[yellow]Reloader stopped[/yellow]")


@cli.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--since", default=60.0, type=click.FloatRange(min=0), help="Look back this many seconds")
@click.option("--submodules", is_flag=True, help="Also import every submodule of each package")
@click.option("--all", "show_all", is_flag=True, help="Include unchanged modules in the table")
def scan(packages: tuple[str, ...], since: float, submodules: bool, show_all: bool) -> None:
    """Run one scan over modules of PACKAGES changed in the last SINCE seconds."""
    import_packages(packages, submodules=submodules)

    scanner = ModuleScanner(SysModulesRegistry(packages))
    now = time.time()
    outcomes = scanner.scan(now - since, now)

    table = Table(title="Scan Results")
    table.add_column("Module", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="dim")

    for outcome in sorted(outcomes, key=lambda o: o.module):
        if outcome.status == ScanStatus.UNCHANGED and not show_all:
            continue
        style = STATUS_STYLES[outcome.status]
        table.add_row(outcome.module, f"[{style}]{outcome.status.value}[/{style}]", outcome.error or "")

    console.print(table)

    failed = [o for o in outcomes if o.status in (ScanStatus.STAT_ERROR, ScanStatus.RELOAD_ERROR)]
    if failed:
        raise SystemExit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
