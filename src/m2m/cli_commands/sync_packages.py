"""Reconcile installed packages with msys2.toml."""

from __future__ import annotations

from m2m.cli_commands import get_environment, load_project, report_result
from m2m.logging import Logger
from m2m.reconciler import Reconciler


def sync_packages(logger: Logger, prune: bool = False) -> None:
    """
    Install declared packages that are missing.

    With ``prune``, explicitly installed packages that aren't declared are
    uninstalled as well.
    """
    project = load_project(logger)
    environment = get_environment(logger, project)

    logger.info("Syncing packages...")
    reconciler = Reconciler(project, environment.package_manager(), logger)
    report_result(logger, reconciler.sync(prune), "Sync")
