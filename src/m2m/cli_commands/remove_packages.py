"""Remove packages from the project."""

from __future__ import annotations

from m2m.cli_commands import get_environment, load_project, report_result
from m2m.logging import Logger
from m2m.reconciler import Reconciler


def remove_packages(logger: Logger, names: list[str]) -> None:
    project = load_project(logger)
    environment = get_environment(logger, project)

    reconciler = Reconciler(project, environment.package_manager(), logger)
    report_result(logger, reconciler.remove_packages(names), "Remove")
