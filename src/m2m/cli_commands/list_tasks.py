from __future__ import annotations

from rich.table import Table

from m2m.cli_commands import load_project
from m2m.logging import Logger


def list_tasks(logger: Logger) -> None:
    """
    List all tasks with their descriptions.
    """
    project = load_project(logger)
    if not project.tasks:
        logger.info("No tasks defined in msys2.toml")
        return

    max_task_name_len = max(len(name) for name in project.tasks.names())

    table = Table(show_edge=False, show_header=False, box=None, padding=(0, 2))
    table.add_column("Task", style="bold cyan", no_wrap=True, width=max_task_name_len)
    table.add_column("Depends on", style="dim", max_width=40)
    table.add_column("Description", style="white", max_width=80)

    for name in sorted(project.tasks.names()):
        task = project.tasks.get(name)
        description = task.description or (task.commands[0] if task.commands else "")
        table.add_row(name, " ".join(task.depends_on), description)

    logger.info(table)
