"""Add packages to the project."""

from __future__ import annotations

from typing import Optional

from m2m.cli_commands import get_environment, load_project, report_result
from m2m.logging import Logger
from m2m.reconciler import Reconciler


def add_packages(logger: Logger, names: list[str], version: Optional[str] = None) -> None:
    """
    Install packages and record their installed versions in msys2.toml.
    """
    project = load_project(logger)
    environment = get_environment(logger, project)

    reconciler = Reconciler(project, environment.package_manager(), logger)
    report_result(logger, reconciler.add_packages(names, version), "Add")
