"""Open an interactive shell in the environment."""

from __future__ import annotations

import typer

from m2m.cli_commands import get_environment, load_project
from m2m.logging import Logger


def shell(logger: Logger) -> None:
    project = load_project(logger)
    environment = get_environment(logger, project)

    logger.info(f"Opening {project.msystem} shell ({environment.msys_prefix()})...")
    exit_code = environment.open_shell()
    if exit_code != 0:
        raise typer.Exit(exit_code)
