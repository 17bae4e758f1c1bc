"""Initialize a new msys2.toml project file."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from m2m.config import ConfigError, load_init_defaults
from m2m.logging import Logger
from m2m.parser import PROJECT_FILE, ProjectFileError, normalize_msystem, toml_string
from m2m.versions import VersionCatalog, VersionLookupError

RELEASE_URL = "https://github.com/msys2/msys2-installer/releases/download/{version}/"
MAX_LISTED_VERSIONS = 20

TEMPLATE = """# MSYS2 project environment
# Run 'm2m bootstrap' to install MSYS2 into .msys2/

[msys2]
msystem = {msystem}
version = {version}
base_url = {base_url}
{mirror_line}auto_update = true

[packages]
# mingw-w64-ucrt-x86_64-gcc = "*"

[tasks]
# [tasks.configure]
# command = "cmake -B build -G Ninja"
#
# [tasks.build]
# description = "Compile the project"
# commands = ["cmake --build build"]
# depends_on = ["configure"]
"""


def list_versions(logger: Logger, catalog: VersionCatalog) -> None:
    """
    Print the newest available MSYS2 versions.
    """
    logger.info("Fetching available MSYS2 versions...")
    try:
        versions = catalog.available_versions()
    except VersionLookupError as e:
        logger.error(f"[red]{e}[/red]")
        raise typer.Exit(1)

    logger.info(f"\nAvailable versions ({len(versions)} total):")
    for version in versions[:MAX_LISTED_VERSIONS]:
        logger.info(f"  {version}")
    if len(versions) > MAX_LISTED_VERSIONS:
        logger.info(f"  ... and {len(versions) - MAX_LISTED_VERSIONS} more")
    logger.info(f"\nLatest version: {versions[0] if versions else 'unknown'}")


def init_project(
    logger: Logger,
    catalog: VersionCatalog,
    msystem: Optional[str] = None,
    mirror: Optional[str] = None,
    version: Optional[str] = None,
) -> None:
    """
    Create msys2.toml in the current directory.
    """
    config_path = Path.cwd() / PROJECT_FILE
    if config_path.exists():
        logger.error(f"[red]{PROJECT_FILE} already exists at {config_path.parent}[/red]")
        logger.info("To reinitialize, delete the existing file first.")
        raise typer.Exit(1)

    try:
        defaults = load_init_defaults()
        msystem = normalize_msystem(msystem) if msystem else defaults.msystem
    except (ConfigError, ProjectFileError) as e:
        logger.error(f"[red]{e}[/red]")
        raise typer.Exit(1)
    mirror = mirror or defaults.mirror

    if not version:
        logger.info("Fetching latest MSYS2 version...")
        try:
            version = catalog.latest_version()
        except VersionLookupError as e:
            logger.error(f"[red]{e}[/red]")
            raise typer.Exit(1)
        logger.info(f"Using latest version: {version}")

    content = TEMPLATE.format(
        msystem=toml_string(msystem),
        version=toml_string(version),
        base_url=toml_string(RELEASE_URL.format(version=version)),
        mirror_line=f"mirror = {toml_string(mirror)}\n" if mirror else "",
    )
    config_path.write_text(content, encoding="utf-8")

    logger.info(f"\n[green]Initialized MSYS2 environment at {config_path.parent}[/green]")
    logger.info(f"  Version: {version}")
    logger.info(f"  MSystem: {msystem}")
    if mirror:
        logger.info(f"  Mirror: {mirror}")
    logger.info("\nNext steps:")
    logger.info("  1. Run 'm2m bootstrap' to install MSYS2")
    logger.info("  2. Run 'm2m add <package>' to add packages")
    logger.info("  3. Run 'm2m shell' to open a shell")
