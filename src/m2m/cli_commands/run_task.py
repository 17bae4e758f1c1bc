"""Run a task, or a literal shell command, inside the environment."""

from __future__ import annotations

from typing import Optional

import typer

from m2m.cli_commands import (
    get_action_failure_string,
    get_action_success_string,
    get_environment,
    load_project,
)
from m2m.cli_commands.list_tasks import list_tasks
from m2m.executor import Executor
from m2m.logging import Logger
from m2m.process_runner import TaskOutputTypes, make_process_runner


def run_task(
    logger: Logger,
    args: list[str],
    list_only: bool = False,
    task_output: Optional[str] = None,
) -> None:
    """
    Execute a task with its dependencies, or run the words as one shell command.

    Args:
    logger: Logger interface for output
    args: Task name, or the words of a shell command
    list_only: Print the task table instead of running anything
    task_output: Control command output (all, none, out, err)

    """
    if list_only:
        list_tasks(logger)
        return

    if not args:
        logger.error("[red]Nothing to run: give a task name or a command[/red]")
        raise typer.Exit(1)

    try:
        output_type = TaskOutputTypes((task_output or TaskOutputTypes.ALL.value).lower())
    except ValueError:
        valid = ", ".join(t.value for t in TaskOutputTypes)
        logger.error(f"[red]Invalid output mode '{task_output}'. Valid modes: {valid}[/red]")
        raise typer.Exit(1)

    project = load_project(logger)
    environment = get_environment(logger, project)

    command_runner = environment.command_runner(make_process_runner(output_type, logger))
    executor = Executor(project.tasks, command_runner, logger, project.project_root)

    task_name = args[0]
    if task_name not in project.tasks:
        exit_code = executor.run_command(" ".join(args))
        if exit_code != 0:
            logger.error(f"[red]{get_action_failure_string()} Command failed with exit code {exit_code}[/red]")
            raise typer.Exit(exit_code)
        return

    if len(args) > 1:
        logger.error(f"[red]Task '{task_name}' does not accept arguments[/red]")
        raise typer.Exit(1)

    exit_code = executor.execute_task(task_name)
    if exit_code != 0:
        logger.error(f"[red]{get_action_failure_string()} Task '{task_name}' failed[/red]")
        raise typer.Exit(exit_code)

    logger.info(f"[green]{get_action_success_string()} Task '{task_name}' completed successfully[/green]")
