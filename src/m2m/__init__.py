"""m2m - Per-project MSYS2 environments with declared packages and tasks."""

__version__ = "0.1.0"

from m2m.errors import M2MError
from m2m.executor import CommandExecutionError, Executor
from m2m.graph import CycleError, Resolution, TaskNotFoundError, build_dependency_tree, resolve_execution_order
from m2m.lockfile import LockEntry, LockFileParseError
from m2m.parser import PackageTable, Project, TaskDefinition, TaskTable, find_project_file, parse_project
from m2m.reconciler import ReconcileResult, Reconciler, plan_sync
from m2m.versions import VersionCatalog

__all__ = [
    "__version__",
    "M2MError",
    "CommandExecutionError",
    "Executor",
    "CycleError",
    "Resolution",
    "TaskNotFoundError",
    "build_dependency_tree",
    "resolve_execution_order",
    "LockEntry",
    "LockFileParseError",
    "PackageTable",
    "Project",
    "TaskDefinition",
    "TaskTable",
    "find_project_file",
    "parse_project",
    "ReconcileResult",
    "Reconciler",
    "plan_sync",
    "VersionCatalog",
]
