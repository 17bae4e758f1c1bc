"""Package manager collaborator backed by MSYS2's pacman."""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import NamedTuple

from m2m.logging import Logger
from m2m.parser import ANY_VERSION
from m2m.process_runner import SHELL_NOT_FOUND_EXIT_CODE, PassthroughProcessRunner, ProcessRunner


class InstalledPackage(NamedTuple):
    name: str
    version: str


class PackageManager(ABC):
    """
    Operations the reconciler needs from a package manager.

    Every call blocks until the underlying tool finishes and is attempted
    exactly once.
    """

    @abstractmethod
    def install(self, name: str, constraint: str = ANY_VERSION) -> bool:
        ...

    @abstractmethod
    def uninstall(self, name: str) -> bool:
        ...

    @abstractmethod
    def query_installed(self) -> list[InstalledPackage] | None:
        """Explicitly installed packages in the package manager's own order.

        None means the query itself failed, which is not the same as an
        empty installation.
        """
        ...

    @abstractmethod
    def query_version(self, name: str) -> str | None:
        """Installed version of ``name``, or None if it isn't installed."""
        ...


class PacmanPackageManager(PackageManager):
    """
    Drives ``pacman`` inside an MSYS2 tree.

    Mutating calls go through ``runner`` so the user sees pacman's progress;
    queries always capture output through a passthrough runner.
    """

    def __init__(
        self,
        pacman: Path,
        env: dict[str, str],
        runner: ProcessRunner,
        logger: Logger,
        query_runner: ProcessRunner | None = None,
    ) -> None:
        self._pacman = pacman
        self._env = env
        self._runner = runner
        self._logger = logger
        self._query_runner = query_runner or PassthroughProcessRunner(logger)

    def install(self, name: str, constraint: str = ANY_VERSION) -> bool:
        target = name if constraint in ("", ANY_VERSION) else f"{name}={constraint}"
        return self._execute("--noconfirm", "-S", "--needed", target) == 0

    def uninstall(self, name: str) -> bool:
        return self._execute("--noconfirm", "-R", name) == 0

    def query_installed(self) -> list[InstalledPackage] | None:
        result = self._query("-Q", "--explicit")
        if result.returncode != 0:
            self._logger.error(f"[red]pacman -Q --explicit failed with exit code {result.returncode}[/red]")
            return None
        return parse_query_output(result.stdout)

    def query_version(self, name: str) -> str | None:
        result = self._query("-Q", name)
        if result.returncode != 0:
            return None
        for package in parse_query_output(result.stdout):
            if package.name == name:
                return package.version
        return None

    def update_database(self) -> int:
        return self._execute("--noconfirm", "-Sy")

    def upgrade(self) -> int:
        # A core update (pacman, msys2-runtime) can end the first pass early
        exit_code = self._execute("--noconfirm", "-Syu")
        if exit_code != 0:
            return exit_code
        return self._execute("--noconfirm", "-Su")

    def search(self, terms: list[str]) -> int:
        return self._execute("-Ss", *terms)

    def _execute(self, *args: str) -> int:
        command = [str(self._pacman), *args]
        self._logger.debug(f"[dim]{' '.join(command)}[/dim]")
        try:
            return self._runner.run(command, env=self._env).returncode
        except FileNotFoundError:
            self._logger.error(f"[red]pacman not found: {self._pacman}[/red]")
            return SHELL_NOT_FOUND_EXIT_CODE

    def _query(self, *args: str) -> subprocess.CompletedProcess[str]:
        command = [str(self._pacman), *args]
        self._logger.trace(f"[dim]{' '.join(command)}[/dim]")
        try:
            return self._query_runner.run(
                command,
                env=self._env,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            self._logger.error(f"[red]pacman not found: {self._pacman}[/red]")
            return subprocess.CompletedProcess(command, SHELL_NOT_FOUND_EXIT_CODE, stdout="", stderr="")


def parse_query_output(output: str | None) -> list[InstalledPackage]:
    """Parse ``pacman -Q`` output (``name version`` per line)."""
    packages = []
    for line in (output or "").splitlines():
        parts = line.split()
        if len(parts) >= 2:
            packages.append(InstalledPackage(parts[0], parts[1]))
    return packages
