"""The project-local MSYS2 installation under ``<project>/.msys2``."""

from __future__ import annotations

import os
import platform
import shutil
import tarfile
from pathlib import Path

import httpx

from m2m.errors import M2MError
from m2m.logging import Logger
from m2m.pacman import PacmanPackageManager
from m2m.process_runner import (
    SHELL_NOT_FOUND_EXIT_CODE,
    PassthroughProcessRunner,
    ProcessRunner,
    ShellCommandRunner,
)

DEFAULT_BASE_URL = "https://repo.msys2.org/distrib/x86_64/"
DOWNLOAD_TIMEOUT_SECONDS = 30.0
DOWNLOAD_CHUNK_SIZE = 1024 * 1024

MSYS_PREFIXES = {
    "UCRT64": "ucrt64",
    "CLANG64": "clang64",
    "CLANGARM64": "clangarm64",
    "CLANG32": "clang32",
    "MINGW64": "mingw64",
    "MINGW32": "mingw32",
}


class EnvironmentNotInstalledError(M2MError):
    """Raised when a command needs the MSYS2 tree and it hasn't been bootstrapped."""

    def __init__(self, root: Path):
        super().__init__(f"MSYS2 is not installed in {root}. Run 'm2m bootstrap' first.")
        self.root = root


class BootstrapError(M2MError):
    """Raised when the base archive can't be downloaded or extracted."""

    pass


def archive_url(base_url: str | None, version: str) -> str:
    """URL of the base archive for ``version`` (``YYYY-MM-DD``) under ``base_url``."""
    base = base_url or DEFAULT_BASE_URL
    if not base.endswith("/"):
        base += "/"
    return f"{base}msys2-base-x86_64-{version.replace('-', '')}.tar.xz"


class Msys2Environment:
    """Paths, process environment and collaborators for one project's MSYS2 tree."""

    ROOT_DIR = ".msys2"

    def __init__(self, project_root: Path, msystem: str, logger: Logger):
        self.project_root = project_root
        self.msystem = msystem
        self.logger = logger

    @property
    def root(self) -> Path:
        return self.project_root / self.ROOT_DIR

    @property
    def tree(self) -> Path:
        return self.root / "msys64"

    @property
    def tmp_path(self) -> Path:
        return self.root / "_tmp"

    @property
    def shell_path(self) -> Path:
        return self.tree / "usr" / "bin" / _executable("bash")

    @property
    def pacman_path(self) -> Path:
        return self.tree / "usr" / "bin" / _executable("pacman")

    def msys_prefix(self) -> Path:
        """Directory holding the active msystem's toolchain (``usr`` for MSYS)."""
        return self.tree / MSYS_PREFIXES.get(self.msystem, "usr")

    def is_installed(self) -> bool:
        return self.tree.is_dir()

    def require_installed(self) -> None:
        """
        Raises:
            EnvironmentNotInstalledError: If the MSYS2 tree is missing
        """
        if not self.is_installed():
            raise EnvironmentNotInstalledError(self.root)

    def process_env(self) -> dict[str, str]:
        """Environment for child processes: the caller's, plus MSYS2 selection."""
        env = dict(os.environ)
        env["MSYSTEM"] = self.msystem
        # Keep login shells in the working directory instead of $HOME
        env["CHERE_INVOKING"] = "1"
        return env

    def command_runner(self, process_runner: ProcessRunner) -> ShellCommandRunner:
        return ShellCommandRunner(self.shell_path, self.process_env(), process_runner, self.logger)

    def package_manager(self, process_runner: ProcessRunner | None = None) -> PacmanPackageManager:
        runner = process_runner or PassthroughProcessRunner(self.logger)
        return PacmanPackageManager(self.pacman_path, self.process_env(), runner, self.logger)

    def open_shell(self) -> int:
        """Run an interactive login shell and return its exit code."""
        runner = PassthroughProcessRunner(self.logger)
        try:
            result = runner.run(
                [str(self.shell_path), "-l"],
                cwd=self.project_root,
                env=self.process_env(),
            )
        except FileNotFoundError:
            self.logger.error(f"[red]Shell not found: {self.shell_path}[/red]")
            return SHELL_NOT_FOUND_EXIT_CODE
        return result.returncode

    def install(self, url: str, client: httpx.Client | None = None) -> None:
        """Download the base archive from ``url`` and extract it into the root.

        Raises:
            BootstrapError: If the download or extraction fails
        """
        self.tmp_path.mkdir(parents=True, exist_ok=True)
        archive = self.tmp_path / url.rstrip("/").rsplit("/", 1)[-1]

        try:
            self._download(url, archive, client)
            self._extract(archive)
        finally:
            shutil.rmtree(self.tmp_path, ignore_errors=True)

    def remove(self) -> bool:
        """Delete the whole MSYS2 root. Returns False if there was nothing to delete."""
        if not self.root.exists():
            return False
        shutil.rmtree(self.root)
        return True

    def _download(self, url: str, destination: Path, client: httpx.Client | None) -> None:
        self.logger.info(f"Downloading {url}")
        owns_client = client is None
        if client is None:
            client = httpx.Client(
                timeout=httpx.Timeout(DOWNLOAD_TIMEOUT_SECONDS, connect=10.0),
                follow_redirects=True,
            )

        try:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                total = int(response.headers.get("content-length", 0))
                received = 0
                with open(destination, "wb") as f:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
                        received += len(chunk)
                        if total:
                            self.logger.debug(f"Downloaded {received}/{total} bytes")
        except httpx.HTTPError as e:
            raise BootstrapError(f"Failed to download {url}: {e}") from e
        finally:
            if owns_client:
                client.close()

    def _extract(self, archive: Path) -> None:
        self.logger.info(f"Extracting {archive.name}")
        try:
            with tarfile.open(archive, "r:*") as tar:
                tar.extractall(self.root, filter="data")
        except (tarfile.TarError, OSError) as e:
            raise BootstrapError(f"Failed to extract {archive.name}: {e}") from e

        if not self.is_installed():
            raise BootstrapError(f"{archive.name} did not contain an msys64 directory")


def _executable(name: str) -> str:
    return f"{name}.exe" if platform.system() == "Windows" else name
