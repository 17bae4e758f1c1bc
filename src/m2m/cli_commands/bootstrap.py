"""Install MSYS2 into the project."""

from __future__ import annotations

from typing import Optional

import typer

from m2m.cli_commands import get_action_success_string, get_environment, load_project
from m2m.environment import BootstrapError, archive_url
from m2m.logging import Logger
from m2m.versions import FALLBACK_VERSION


def bootstrap(logger: Logger, url: Optional[str] = None) -> None:
    """
    Download and extract the MSYS2 base archive, then optionally upgrade it.
    """
    project = load_project(logger)
    environment = get_environment(logger, project, require_installed=False)

    if environment.is_installed():
        logger.info("MSYS2 is already installed.")
        return

    download_url = url or archive_url(project.base_url, project.version or FALLBACK_VERSION)
    logger.info("Installing MSYS2...")

    try:
        environment.install(download_url)
    except BootstrapError as e:
        logger.error(f"[red]{e}[/red]")
        raise typer.Exit(1)

    logger.info(
        f"[green]{get_action_success_string()} MSYS2 installed successfully "
        f"({project.msystem}: {environment.msys_prefix()})[/green]"
    )

    if project.auto_update:
        logger.info("Updating packages...")
        exit_code = environment.package_manager().upgrade()
        if exit_code != 0:
            logger.error(f"[red]Package upgrade failed with exit code {exit_code}[/red]")
            raise typer.Exit(exit_code)
