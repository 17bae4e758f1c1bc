"""Sequential, fail-fast task execution."""

from __future__ import annotations

from pathlib import Path

from m2m.errors import M2MError
from m2m.graph import TaskNotFoundError, resolve_execution_order
from m2m.logging import Logger
from m2m.parser import TaskTable
from m2m.process_runner import CommandRunner

GENERIC_FAILURE_EXIT_CODE = 1


class CommandExecutionError(M2MError):
    """A task command exited non-zero."""

    def __init__(self, task_name: str, command: str, exit_code: int):
        super().__init__(
            f"Task '{task_name}' failed with exit code {exit_code}: {command}"
        )
        self.task_name = task_name
        self.command = command
        self.exit_code = exit_code


class Executor:
    """Runs tasks in a resolved order, stopping at the first failing command."""

    def __init__(
        self,
        tasks: TaskTable,
        command_runner: CommandRunner,
        logger: Logger,
        working_dir: Path,
    ):
        """Initialize executor.

        Args:
            tasks: Table of all known tasks
            command_runner: Collaborator that runs one shell command
            logger: Logger for progress and failures
            working_dir: Directory every command runs in
        """
        self.tasks = tasks
        self.command_runner = command_runner
        self.logger = logger
        self.working_dir = working_dir

    def execute_task(self, task_name: str) -> int:
        """Resolve a task's dependencies and execute them, then the task.

        A missing task or a dependency cycle is reported before any command
        runs and yields exit code 1.

        Returns:
            0 on success, 1 if resolution failed, otherwise the exit code of
            the failing command
        """
        resolution = resolve_execution_order(self.tasks, task_name)
        if not resolution.ok:
            self.logger.error(f"[red]{resolution.error}[/red]")
            return GENERIC_FAILURE_EXIT_CODE

        self.logger.debug(f"Execution order: {' -> '.join(resolution.order)}")
        return self.execute(resolution.order)

    def execute(self, execution_order: list[str]) -> int:
        """Run every command of every task in order.

        Completed commands are never undone; execution simply stops at the
        first non-zero exit code, which becomes the result.

        Args:
            execution_order: Task names, dependencies first

        Returns:
            0 if every command succeeded, otherwise the failing exit code
        """
        for name in execution_order:
            if name not in self.tasks:
                self.logger.error(f"[red]{TaskNotFoundError(name)}[/red]")
                return GENERIC_FAILURE_EXIT_CODE

        for name in execution_order:
            failure = self._run_task(name)
            if failure is not None:
                self.logger.error(f"[red]{failure}[/red]")
                return failure.exit_code

        return 0

    def run_command(self, command: str) -> int:
        """Run a literal shell command without any task resolution."""
        self.logger.info(f"Running: {command}")
        return self.command_runner.run(command, self.working_dir)

    def _run_task(self, name: str) -> CommandExecutionError | None:
        """Run each command of a task, stopping at the first failure."""
        task = self.tasks.get(name)

        self.logger.info(f"[bold]Running: {name}[/bold]")
        if not task.commands:
            self.logger.debug(f"Task '{name}' has no commands")

        for command in task.commands:
            exit_code = self.command_runner.run(command, self.working_dir)
            if exit_code != 0:
                return CommandExecutionError(name, command, exit_code)

        return None
