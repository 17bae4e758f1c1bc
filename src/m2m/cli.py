"""Command-line interface for m2m."""

from __future__ import annotations

from typing import Callable, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from m2m import __version__
from m2m.cli_commands.add_packages import add_packages
from m2m.cli_commands.bootstrap import bootstrap
from m2m.cli_commands.clean import clean
from m2m.cli_commands.init_project import init_project, list_versions
from m2m.cli_commands.list_packages import list_packages
from m2m.cli_commands.remove_packages import remove_packages
from m2m.cli_commands.run_task import run_task
from m2m.cli_commands.search import search
from m2m.cli_commands.shell import shell
from m2m.cli_commands.show_task import show_task
from m2m.cli_commands.sync_packages import sync_packages
from m2m.cli_commands.update import update
from m2m.console_logger import ConsoleLogger
from m2m.logging import Logger, parse_log_level
from m2m.versions import VersionCatalog

INTERRUPTED_EXIT_CODE = 130

app = typer.Typer(
    help="m2m - Per-project MSYS2 environments with declared packages and tasks",
    add_completion=False,
    no_args_is_help=True,
)

# Shared for the whole process so the distribution listing is fetched at most once
version_catalog = VersionCatalog()


def _version_callback(value: bool) -> None:
    if value:
        Console().print(f"m2m version {__version__}")
        raise typer.Exit()


def _invoke(ctx: typer.Context, command: Callable[..., None], *args, **kwargs) -> None:
    """Run a command implementation with the logger from the root context."""
    logger: Logger = ctx.obj
    try:
        command(logger, *args, **kwargs)
    except KeyboardInterrupt:
        logger.error("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(INTERRUPTED_EXIT_CODE)
    except OSError as e:
        logger.error(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-L",
        help="Log verbosity: fatal, error, warn, info, debug or trace",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    error_console = Console(stderr=True)
    try:
        level = parse_log_level(log_level)
    except ValueError as e:
        error_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    ctx.obj = ConsoleLogger(Console(), level, error_console)


@app.command("init")
def init_command(
    ctx: typer.Context,
    msystem: Optional[str] = typer.Option(None, "--msystem", "-m", help="MSYS2 environment, e.g. UCRT64"),
    mirror: Optional[str] = typer.Option(None, "--mirror", help="Package mirror URL"),
    version: Optional[str] = typer.Option(None, "--version", help="MSYS2 release (YYYY-MM-DD); defaults to the latest"),
    list_available: bool = typer.Option(False, "--list-versions", help="List available MSYS2 releases and exit"),
) -> None:
    """Create msys2.toml in the current directory."""
    if list_available:
        _invoke(ctx, list_versions, version_catalog)
        return
    _invoke(ctx, init_project, version_catalog, msystem=msystem, mirror=mirror, version=version)


@app.command("bootstrap")
def bootstrap_command(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", help="Download the base archive from this URL instead"),
) -> None:
    """Download and install MSYS2 into .msys2."""
    _invoke(ctx, bootstrap, url=url)


@app.command("update")
def update_command(ctx: typer.Context) -> None:
    """Refresh the package database."""
    _invoke(ctx, update)


@app.command("search")
def search_command(
    ctx: typer.Context,
    terms: List[str] = typer.Argument(..., help="Search terms"),
) -> None:
    """Search the package repositories."""
    _invoke(ctx, search, terms)


@app.command("list")
def list_command(
    ctx: typer.Context,
    lock_file: bool = typer.Option(False, "--lock-file", help="List the entries of msys2.lock instead"),
) -> None:
    """List explicitly installed packages."""
    _invoke(ctx, list_packages, from_lock_file=lock_file)


@app.command("add")
def add_command(
    ctx: typer.Context,
    packages: List[str] = typer.Argument(..., help="Packages to add"),
    version: Optional[str] = typer.Option(None, "--version", help="Version constraint for every package"),
) -> None:
    """Install packages and record them in msys2.toml."""
    _invoke(ctx, add_packages, packages, version)


@app.command("remove")
def remove_command(
    ctx: typer.Context,
    packages: List[str] = typer.Argument(..., help="Packages to remove"),
) -> None:
    """Uninstall packages and drop them from msys2.toml."""
    _invoke(ctx, remove_packages, packages)


@app.command("sync")
def sync_command(
    ctx: typer.Context,
    prune: bool = typer.Option(False, "--prune", help="Also uninstall packages not declared in msys2.toml"),
) -> None:
    """Install every package declared in msys2.toml."""
    _invoke(ctx, sync_packages, prune=prune)


@app.command(
    "run",
    context_settings={
        "ignore_unknown_options": True,
        "allow_extra_args": True,
        "allow_interspersed_args": False,
    },
)
def run_command(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, help="Task name, or a shell command"),
    list_only: bool = typer.Option(False, "--list", "-l", help="List all tasks"),
    task_output: Optional[str] = typer.Option(
        None, "--output", "-O", help="Command output to show: all, none, out or err"
    ),
) -> None:
    """Run a task with its dependencies, or a shell command, in the environment."""
    _invoke(ctx, run_task, list(args or []) + list(ctx.args), list_only=list_only, task_output=task_output)


@app.command("show")
def show_command(
    ctx: typer.Context,
    task: str = typer.Argument(..., help="Task to show"),
) -> None:
    """Show a task definition and its dependency tree."""
    _invoke(ctx, show_task, task)


@app.command("shell")
def shell_command(ctx: typer.Context) -> None:
    """Open an interactive login shell in the environment."""
    _invoke(ctx, shell)


@app.command("clean")
def clean_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Confirm deletion of .msys2"),
) -> None:
    """Delete the project's MSYS2 installation."""
    _invoke(ctx, clean, force=force)


def main() -> None:
    """Entry point for the m2m console script."""
    app()


if __name__ == "__main__":
    main()
