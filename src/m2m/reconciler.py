"""Reconcile installed packages with the desired configuration.

Package failures are reported through ``ReconcileResult.error``; the public
methods never raise them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from m2m import lockfile
from m2m.errors import M2MError
from m2m.lockfile import LockEntry
from m2m.logging import Logger
from m2m.pacman import InstalledPackage, PackageManager
from m2m.parser import ANY_VERSION, PackageTable, Project, ProjectFileError, save_packages


class PackageError(M2MError):
    """Base class for a hard failure on a single package."""

    reason = "failed"

    def __init__(self, name: str):
        super().__init__(f"Package '{name}' {self.reason}")
        self.name = name


class PackageInstallError(PackageError):
    reason = "failed to install"


class PackageUninstallError(PackageError):
    reason = "failed to uninstall"


class PackageVerificationError(PackageError):
    reason = "could not be verified: the package manager disagrees with the reported result"


class PackageQueryError(M2MError):
    def __init__(self):
        super().__init__("Could not query the installed packages")


@dataclass
class PackageSpec:
    name: str
    constraint: str = ANY_VERSION


@dataclass
class SyncPlan:
    to_install: list[PackageSpec] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Outcome of a sync, add or remove.

    ``installed`` and ``removed`` list what actually changed, in order.
    ``skipped`` lists names that hit a soft condition and were left alone.
    """

    installed: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: M2MError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def changed(self) -> bool:
        return bool(self.installed or self.removed)


def plan_sync(
    desired: PackageTable,
    installed: Iterable[InstalledPackage],
    prune: bool = False,
) -> SyncPlan:
    """Compute what a sync has to do.

    Membership is by name only; installed versions are ignored. Installs
    follow declaration order, removals follow the package manager's order.
    Nothing is scheduled for removal unless ``prune`` is set.
    """
    installed = list(installed)
    installed_names = {package.name for package in installed}

    to_install = [
        PackageSpec(name, constraint)
        for name, constraint in desired.items()
        if name not in installed_names
    ]

    to_remove: list[str] = []
    if prune:
        for package in installed:
            if package.name not in desired and package.name not in to_remove:
                to_remove.append(package.name)

    return SyncPlan(to_install=to_install, to_remove=to_remove)


class Reconciler:
    """Applies package plans through a PackageManager and keeps config and lock file current."""

    def __init__(self, project: Project, package_manager: PackageManager, logger: Logger):
        self.project = project
        self.packages = package_manager
        self.logger = logger

    def sync(self, prune: bool = False) -> ReconcileResult:
        """Install missing packages, then (with ``prune``) remove undeclared ones.

        All installs run before any removal. The first failure stops the
        whole sync; nothing already done is rolled back.
        """
        result = ReconcileResult()
        installed = self.packages.query_installed()
        if installed is None:
            result.error = PackageQueryError()
            self._finish(result)
            return result

        plan = plan_sync(self.project.packages, installed, prune)

        if not plan.to_install and not plan.to_remove:
            self.logger.info("Everything is up to date.")
            return result

        try:
            for spec in plan.to_install:
                self.logger.info(f"Installing {spec.name}={spec.constraint}...")
                self._install(spec.name, spec.constraint)
                result.installed.append(spec.name)

            for name in plan.to_remove:
                self.logger.info(f"Removing {name}...")
                self._uninstall(name)
                result.removed.append(name)
        except PackageError as e:
            result.error = e

        self._finish(result)
        return result

    def add_packages(self, names: Iterable[str], constraint: str | None = None) -> ReconcileResult:
        """Install packages and record them in msys2.toml.

        A package is written to the configuration only after the package
        manager reports it installed, and with the version it reports.
        Names already in the configuration are skipped with a warning.
        """
        result = ReconcileResult()

        try:
            for name in names:
                if name in self.project.packages:
                    self.logger.warn(f"[yellow]Package {name} is already in configuration.[/yellow]")
                    result.skipped.append(name)
                    continue

                self.logger.info(f"Installing {name}...")
                version = self._install(name, constraint or ANY_VERSION)
                result.installed.append(name)

                updated = self.project.packages.copy()
                updated.put(name, version)
                self._persist(updated)
                self.logger.info(f"Added {name}={version} to {self.project.config_path.name}")
        except (PackageError, ProjectFileError) as e:
            result.error = e

        self._finish(result)
        return result

    def remove_packages(self, names: Iterable[str]) -> ReconcileResult:
        """Uninstall packages and drop them from msys2.toml.

        The configuration entry is only removed once the package manager
        confirms the package is gone. Names not in the configuration are
        skipped with a warning.
        """
        result = ReconcileResult()

        try:
            for name in names:
                if name not in self.project.packages:
                    self.logger.warn(f"[yellow]Package {name} is not in configuration.[/yellow]")
                    result.skipped.append(name)
                    continue

                self.logger.info(f"Removing {name}...")
                self._uninstall(name)
                result.removed.append(name)

                updated = self.project.packages.copy()
                updated.remove(name)
                self._persist(updated)
                self.logger.info(f"Removed {name} from {self.project.config_path.name}")
        except (PackageError, ProjectFileError) as e:
            result.error = e

        self._finish(result)
        return result

    def write_lock_file(self) -> list[LockEntry] | None:
        """Snapshot the explicitly installed packages into the lock file.

        The existing lock file is kept when the package manager can't be queried.
        """
        installed = self.packages.query_installed()
        if installed is None:
            self.logger.warn(f"[yellow]{PackageQueryError()}; {self.project.lock_path.name} was not updated[/yellow]")
            return None

        entries = [LockEntry(package.name, package.version) for package in installed]
        lockfile.save(self.project.lock_path, entries)
        self.logger.debug(f"Wrote {len(entries)} entries to {self.project.lock_path}")
        return entries

    def _install(self, name: str, constraint: str) -> str:
        """Install a package and return the version the package manager reports.

        Raises:
            PackageInstallError: If the install command fails
            PackageVerificationError: If the package isn't installed afterwards
        """
        if not self.packages.install(name, constraint):
            raise PackageInstallError(name)
        version = self.packages.query_version(name)
        if version is None:
            raise PackageVerificationError(name)
        return version

    def _uninstall(self, name: str) -> None:
        if not self.packages.uninstall(name):
            raise PackageUninstallError(name)
        if self.packages.query_version(name) is not None:
            raise PackageVerificationError(name)

    def _persist(self, packages: PackageTable) -> None:
        save_packages(self.project.config_path, packages)
        self.project.packages = packages

    def _finish(self, result: ReconcileResult) -> None:
        if result.error is not None:
            self.logger.error(f"[red]{result.error}. Aborting.[/red]")
        if result.changed:
            self.write_lock_file()
