"""Dependency resolution for tasks."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterator

from m2m.errors import M2MError
from m2m.parser import TaskTable


class TaskNotFoundError(M2MError):
    """A task or one of its dependencies doesn't exist."""

    def __init__(self, task_name: str):
        super().__init__(f"Task not found: {task_name}")
        self.task_name = task_name


class CycleError(M2MError):
    """A dependency cycle was found."""

    def __init__(self, task_name: str, chain: list[str]):
        super().__init__(
            f"Circular dependency detected at task '{task_name}': {' -> '.join(chain)}"
        )
        self.task_name = task_name
        self.chain = chain


GraphError = TaskNotFoundError | CycleError


@dataclass
class Resolution:
    """Execution order for a target, or the reason there isn't one.

    ``order`` is empty whenever ``error`` is set; no partial order is returned.
    """

    order: list[str] = field(default_factory=list)
    error: GraphError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class _Mark(enum.Enum):
    IN_PROGRESS = 1
    DONE = 2


_EXHAUSTED = object()


def resolve_execution_order(tasks: TaskTable, target_task: str) -> Resolution:
    """Resolve execution order for a task and its dependencies.

    Depth-first: dependencies are visited in declared order, and a task is
    appended once all of its dependencies are done. Repeated dependency names
    are ignored. The traversal keeps its own stack so that very deep chains
    can't exhaust the interpreter's recursion limit.

    Args:
        tasks: Table containing all tasks
        target_task: Name of the task to execute

    Returns:
        Resolution whose order lists dependencies first and the target last,
        or whose error is a TaskNotFoundError or CycleError
    """
    root = tasks.get(target_task)
    if root is None:
        return Resolution(error=TaskNotFoundError(target_task))

    marks: dict[str, _Mark] = {target_task: _Mark.IN_PROGRESS}
    order: list[str] = []
    stack: list[tuple[str, Iterator[str]]] = [(target_task, iter(root.depends_on))]

    while stack:
        name, deps = stack[-1]
        dep = next(deps, _EXHAUSTED)

        if dep is _EXHAUSTED:
            stack.pop()
            marks[name] = _Mark.DONE
            order.append(name)
            continue

        mark = marks.get(dep)
        if mark is _Mark.DONE:
            continue
        if mark is _Mark.IN_PROGRESS:
            active = [entry for entry, _ in stack]
            chain = active[active.index(dep):] + [dep]
            return Resolution(error=CycleError(dep, chain))

        task = tasks.get(dep)
        if task is None:
            return Resolution(error=TaskNotFoundError(dep))

        marks[dep] = _Mark.IN_PROGRESS
        stack.append((dep, iter(task.depends_on)))

    return Resolution(order=order)


def build_dependency_tree(tasks: TaskTable, target_task: str) -> dict:
    """Build a tree structure representing dependencies for visualization.

    Cycles and unknown tasks are marked rather than reported as errors so
    that a broken configuration can still be inspected.

    Args:
        tasks: Table containing all tasks
        target_task: Name of the task to build tree for

    Returns:
        Nested dictionary with ``name``, ``deps`` and optional ``cycle``/``missing`` flags
    """
    visiting: set[str] = set()

    def build_tree(task_name: str) -> dict:
        task = tasks.get(task_name)
        if task is None:
            return {"name": task_name, "deps": [], "missing": True}

        if task_name in visiting:
            return {"name": task_name, "deps": [], "cycle": True}

        visiting.add(task_name)
        seen: list[str] = []
        for dep in task.depends_on:
            if dep not in seen:
                seen.append(dep)
        tree = {
            "name": task_name,
            "deps": [build_tree(dep) for dep in seen],
        }
        visiting.remove(task_name)

        return tree

    return build_tree(target_task)
