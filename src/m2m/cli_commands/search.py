"""Search the MSYS2 repositories."""

from __future__ import annotations

import typer

from m2m.cli_commands import get_environment, load_project
from m2m.logging import Logger


def search(logger: Logger, terms: list[str]) -> None:
    project = load_project(logger)
    environment = get_environment(logger, project)

    exit_code = environment.package_manager().search(terms)
    if exit_code != 0:
        raise typer.Exit(exit_code)
