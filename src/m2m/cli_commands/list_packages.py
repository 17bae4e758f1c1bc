from __future__ import annotations

import typer
from rich.table import Table

from m2m import lockfile
from m2m.cli_commands import get_environment, load_project
from m2m.lockfile import LockFileParseError
from m2m.logging import Logger


def list_packages(logger: Logger, from_lock_file: bool = False) -> None:
    """
    Show explicitly installed packages, or the entries of the lock file.
    """
    project = load_project(logger)

    if from_lock_file:
        try:
            entries = lockfile.load(project.lock_path)
        except LockFileParseError as e:
            logger.error(f"[red]{project.lock_path.name}: {e}[/red]")
            raise typer.Exit(1)
        if not entries:
            logger.info("Lock file is empty or does not exist.")
            return
    else:
        environment = get_environment(logger, project)
        entries = environment.package_manager().query_installed()
        if entries is None:
            logger.error("[red]Could not list installed packages[/red]")
            raise typer.Exit(1)
        if not entries:
            logger.info("No packages installed.")
            return

    # Borderless two-column table, package names fixed to the longest one
    width = max(len(name) for name, _ in entries)
    table = Table(show_edge=False, show_header=False, box=None, padding=(0, 2))
    table.add_column("Package", style="bold cyan", no_wrap=True, width=width)
    table.add_column("Version", style="white")

    for name, version in entries:
        table.add_row(name, version)

    logger.info(table)
    logger.info(f"\nTotal: {len(entries)} package(s)")
