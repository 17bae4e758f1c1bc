"""Remove the project's MSYS2 installation."""

from __future__ import annotations

import typer

from m2m.cli_commands import get_action_success_string, get_environment, load_project
from m2m.logging import Logger


def clean(logger: Logger, force: bool = False) -> None:
    """
    Delete ``.msys2``; refuses unless ``force`` is set.
    """
    project = load_project(logger)
    environment = get_environment(logger, project, require_installed=False)

    if not environment.root.exists():
        logger.info("MSYS2 is not installed.")
        return

    if not force:
        logger.error(f"[red]Refusing to delete {environment.root} without --force[/red]")
        raise typer.Exit(1)

    environment.remove()
    logger.info(f"[green]{get_action_success_string()} Removed {environment.root}[/green]")
