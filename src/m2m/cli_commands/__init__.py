"""CLI command implementations and shared utilities."""

from __future__ import annotations

import os
import sys

import typer

from m2m.environment import EnvironmentNotInstalledError, Msys2Environment
from m2m.logging import Logger
from m2m.parser import PROJECT_FILE, Project, ProjectFileError, find_project_file, parse_project
from m2m.reconciler import ReconcileResult


def _supports_unicode() -> bool:
    """
    Check if the terminal can print the tick/cross symbols.
    """
    # Classic Windows console (conhost)
    if os.name == "nt" and "WT_SESSION" not in os.environ:
        return False

    encoding = sys.stdout.encoding
    if not encoding:
        return False

    try:
        "✓✗".encode(encoding)
        return True
    except UnicodeEncodeError:
        return False


def get_action_success_string() -> str:
    return "✓" if _supports_unicode() else "[ OK ]"


def get_action_failure_string() -> str:
    return "✗" if _supports_unicode() else "[ FAIL ]"


def load_project(logger: Logger) -> Project:
    """
    Find and parse msys2.toml, exiting with status 1 if that isn't possible.
    """
    config_path = find_project_file()
    if config_path is None:
        logger.error(f"[red]No {PROJECT_FILE} found in this directory or any parent[/red]")
        logger.info("Run [cyan]m2m init[/cyan] to create one")
        raise typer.Exit(1)

    try:
        project = parse_project(config_path)
    except ProjectFileError as e:
        logger.error(f"[red]{e}[/red]")
        raise typer.Exit(1)

    logger.debug(f"Project root: {project.project_root}")
    return project


def get_environment(logger: Logger, project: Project, require_installed: bool = True) -> Msys2Environment:
    """
    Environment for the project, optionally exiting with status 1 if it isn't bootstrapped.
    """
    environment = Msys2Environment(project.project_root, project.msystem, logger)
    if require_installed:
        try:
            environment.require_installed()
        except EnvironmentNotInstalledError as e:
            logger.error(f"[red]{e}[/red]")
            raise typer.Exit(1)
    return environment


def report_result(logger: Logger, result: ReconcileResult, action: str) -> None:
    """
    Summarise a reconcile result and exit with status 1 if it failed.
    """
    if result.installed:
        logger.info(f"Installed: {', '.join(result.installed)}")
    if result.removed:
        logger.info(f"Removed: {', '.join(result.removed)}")

    if not result.ok:
        logger.error(f"[red]{get_action_failure_string()} {action} failed: {result.error}[/red]")
        raise typer.Exit(1)

    logger.info(f"[green]{get_action_success_string()} {action} complete[/green]")
