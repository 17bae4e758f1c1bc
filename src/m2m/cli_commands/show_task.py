from __future__ import annotations

import typer
import yaml
from rich.syntax import Syntax
from rich.tree import Tree

from m2m.cli_commands import load_project
from m2m.graph import build_dependency_tree
from m2m.logging import Logger


class _TaskDumper(yaml.SafeDumper):
    pass


def _literal_presenter(dumper, data):
    """Use literal block style (|) for strings containing newlines."""
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_TaskDumper.add_representer(str, _literal_presenter)


def show_task(logger: Logger, task_name: str) -> None:
    """
    Show task definition with syntax highlighting, followed by its dependency tree.
    """
    project = load_project(logger)

    task = project.tasks.get(task_name)
    if task is None:
        logger.error(f"[red]Task not found: {task_name}[/red]")
        raise typer.Exit(1)

    logger.info(f"[bold]Task: {task_name}[/bold]")
    logger.info(f"Source: {project.config_path}\n")

    task_yaml = {
        task_name: {
            "description": task.description,
            "depends_on": task.depends_on,
            "commands": task.commands,
        }
    }

    # Remove empty fields for cleaner display
    task_yaml[task_name] = {k: v for k, v in task_yaml[task_name].items() if v}

    yaml_str = yaml.dump(task_yaml, Dumper=_TaskDumper, default_flow_style=False, sort_keys=False)
    logger.info(Syntax(yaml_str, "yaml", theme="ansi_light", line_numbers=False))

    logger.info("")
    logger.info(_build_rich_tree(build_dependency_tree(project.tasks, task_name)))


def _build_rich_tree(dep_tree: dict) -> Tree:
    """
    Build a Rich Tree from the nested dictionary returned by build_dependency_tree.
    """
    task_name = dep_tree["name"]
    if dep_tree.get("missing"):
        label = f"[red]{task_name} (not found)[/red]"
    elif dep_tree.get("cycle"):
        label = f"[yellow]{task_name} (cycle)[/yellow]"
    else:
        label = task_name

    tree = Tree(label)
    for dep in dep_tree.get("deps", []):
        tree.add(_build_rich_tree(dep))

    return tree
