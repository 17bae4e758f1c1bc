"""Refresh the package database."""

from __future__ import annotations

import typer

from m2m.cli_commands import get_environment, load_project
from m2m.logging import Logger


def update(logger: Logger) -> None:
    project = load_project(logger)
    environment = get_environment(logger, project)

    logger.info("Updating package database...")
    exit_code = environment.package_manager().update_database()
    if exit_code != 0:
        logger.error(f"[red]Package database update failed with exit code {exit_code}[/red]")
        raise typer.Exit(exit_code)
    logger.info("Package database updated.")
