"""Parse msys2.toml project files into tasks and desired packages."""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, Iterator, TypeVar

from m2m.errors import M2MError

PROJECT_FILE = "msys2.toml"
ANY_VERSION = "*"
DEFAULT_MSYSTEM = "UCRT64"
MSYSTEMS = ("UCRT64", "CLANG64", "CLANGARM64", "CLANG32", "MINGW64", "MINGW32", "MSYS")

_PACKAGES_HEADER = re.compile(r"^\s*\[\s*(packages|'packages'|\"packages\")\s*\]\s*(#.*)?$")
_TABLE_HEADER = re.compile(r"^\s*\[")
_TOML_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}

V = TypeVar("V")


class ProjectFileError(M2MError):
    """Raised when msys2.toml cannot be read or has an invalid structure."""

    pass


class DuplicateEntryError(M2MError):
    """Raised when a name is inserted twice into a table that forbids replacement."""

    def __init__(self, name: str):
        super().__init__(f"Duplicate entry: {name}")
        self.name = name


class NamedTable(Generic[V]):
    """Ordered mapping from unique name to value.

    Insertion order is iteration order. ``put`` with ``replace=True`` overwrites
    an existing value in place (last write wins, original position kept);
    with ``replace=False`` a duplicate raises ``DuplicateEntryError``.
    """

    def __init__(self, items: dict[str, V] | None = None):
        self._items: dict[str, V] = {}
        for name, value in (items or {}).items():
            self.put(name, value)

    def put(self, name: str, value: V, replace: bool = True) -> None:
        if not replace and name in self._items:
            raise DuplicateEntryError(name)
        self._items[name] = value

    def get(self, name: str) -> V | None:
        return self._items.get(name)

    def remove(self, name: str) -> V:
        return self._items.pop(name)

    def names(self) -> list[str]:
        return list(self._items.keys())

    def items(self) -> list[tuple[str, V]]:
        return list(self._items.items())

    def copy(self):
        return type(self)(dict(self._items))

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamedTable):
            return NotImplemented
        return list(self._items.items()) == list(other._items.items())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r})"


@dataclass
class TaskDefinition:
    """A named task: an ordered command list plus the tasks it depends on."""

    name: str
    commands: list[str] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)
    description: str | None = None

    def __post_init__(self):
        """Ensure lists are always lists."""
        if isinstance(self.commands, str):
            self.commands = [self.commands]
        if isinstance(self.depends_on, str):
            self.depends_on = [self.depends_on]

    @classmethod
    def from_config(cls, name: str, raw: Any) -> "TaskDefinition":
        """Build a task from its msys2.toml value.

        A bare string is shorthand for ``command``. When both forms are
        present a non-empty ``commands`` list wins over ``command``.

        Raises:
            ProjectFileError: If any field has the wrong type
        """
        if isinstance(raw, str):
            return cls(name=name, commands=[raw])

        if not isinstance(raw, dict):
            raise ProjectFileError(f"Task '{name}' must be a table or a string")

        command = raw.get("command")
        if command is not None and not isinstance(command, str):
            raise ProjectFileError(f"Task '{name}': 'command' must be a string")

        commands = raw.get("commands")
        if commands is not None and not _is_str_list(commands):
            raise ProjectFileError(f"Task '{name}': 'commands' must be a list of strings")

        if commands:
            resolved = list(commands)
        elif command is not None:
            resolved = [command]
        else:
            resolved = []

        depends_on = raw.get("depends_on", [])
        if isinstance(depends_on, str):
            depends_on = [depends_on]
        if not _is_str_list(depends_on):
            raise ProjectFileError(f"Task '{name}': 'depends_on' must be a list of task names")

        description = raw.get("description")
        if description is not None and not isinstance(description, str):
            raise ProjectFileError(f"Task '{name}': 'description' must be a string")

        return cls(
            name=name,
            commands=resolved,
            depends_on=list(depends_on),
            description=description,
        )


class TaskTable(NamedTable[TaskDefinition]):
    """Task name to definition."""

    def add(self, task: TaskDefinition, replace: bool = True) -> None:
        self.put(task.name, task, replace=replace)


class PackageTable(NamedTable[str]):
    """Package name to version constraint (``*`` means any)."""

    pass


@dataclass
class Project:
    """Desired configuration loaded from msys2.toml."""

    config_path: Path
    msystem: str = DEFAULT_MSYSTEM
    version: str | None = None
    base_url: str | None = None
    mirror: str | None = None
    auto_update: bool = True
    packages: PackageTable = field(default_factory=PackageTable)
    tasks: TaskTable = field(default_factory=TaskTable)

    @property
    def project_root(self) -> Path:
        return self.config_path.parent

    @property
    def lock_path(self) -> Path:
        return self.config_path.with_suffix(".lock")


def find_project_file(start_dir: Path | None = None) -> Path | None:
    """Find msys2.toml in the current or any parent directory.

    Args:
        start_dir: Directory to start searching from (defaults to cwd)

    Returns:
        Path to the project file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / PROJECT_FILE
        if candidate.is_file():
            return candidate

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def normalize_msystem(value: Any) -> str:
    """Validate an msystem name and return it upper-cased.

    Raises:
        ProjectFileError: If the value is not a known MSYS2 environment
    """
    if not isinstance(value, str) or value.upper() not in MSYSTEMS:
        raise ProjectFileError(
            f"Unknown msystem '{value}'. Expected one of: {', '.join(MSYSTEMS)}"
        )
    return value.upper()


def parse_project(config_path: Path) -> Project:
    """Parse msys2.toml.

    Args:
        config_path: Path to the project file

    Returns:
        Project with packages and tasks in declaration order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ProjectFileError: If the TOML is invalid or a section has the wrong shape
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Project file not found: {config_path}")

    data = _load_toml(config_path.read_text(encoding="utf-8"), config_path)

    project = Project(config_path=config_path)

    msys2 = _section(data, "msys2")
    if "msystem" in msys2:
        project.msystem = normalize_msystem(msys2["msystem"])
    project.version = _optional_str(msys2, "version")
    project.base_url = _optional_str(msys2, "base_url")
    project.mirror = _optional_str(msys2, "mirror")
    if "auto_update" in msys2:
        if not isinstance(msys2["auto_update"], bool):
            raise ProjectFileError("'msys2.auto_update' must be a boolean")
        project.auto_update = msys2["auto_update"]

    for name, constraint in _section(data, "packages").items():
        if not isinstance(constraint, str):
            raise ProjectFileError(
                f"Package '{name}' must map to a version string (use \"*\" for any)"
            )
        project.packages.put(name, constraint or ANY_VERSION)

    for name, raw in _section(data, "tasks").items():
        project.tasks.add(TaskDefinition.from_config(name, raw))

    return project


def save_packages(config_path: Path, packages: PackageTable) -> None:
    """Rewrite the [packages] section of msys2.toml, leaving every other line intact.

    The section is appended to the end of the file when it doesn't exist.
    Nothing is written unless the result parses back to the same packages.

    Raises:
        ProjectFileError: If the existing section can't be located or the
            rewritten file wouldn't parse
    """
    text = config_path.read_text(encoding="utf-8") if config_path.exists() else ""
    lines = text.splitlines()
    body = [f"{_toml_key(name)} = {toml_string(constraint)}" for name, constraint in packages.items()]

    section_start = None
    for idx, raw in enumerate(lines):
        if _PACKAGES_HEADER.match(raw):
            section_start = idx
            break

    if section_start is None:
        if "packages" in _load_toml(text, config_path):
            raise ProjectFileError(
                f"Cannot update packages in {config_path.name}: "
                "declare them under a plain packages table header"
            )
        if lines and lines[-1].strip():
            lines.append("")
        lines.append("[packages]")
        lines.extend(body)
    else:
        section_end = len(lines)
        for idx in range(section_start + 1, len(lines)):
            if _TABLE_HEADER.match(lines[idx]):
                section_end = idx
                break

        # Keep the blank lines and comments that separate this section from the next
        trailer_start = section_end
        while trailer_start > section_start + 1 and _is_trivia(lines[trailer_start - 1]):
            trailer_start -= 1

        lines[section_start + 1:trailer_start] = body

    updated = "\n".join(lines) + "\n"
    if _load_toml(updated, config_path).get("packages") != dict(packages.items()):
        raise ProjectFileError(f"Cannot update packages in {config_path.name}: unexpected file layout")
    config_path.write_text(updated, encoding="utf-8")


def _load_toml(text: str, config_path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ProjectFileError(f"Error parsing {config_path.name}: {e}") from e


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ProjectFileError(f"Section '{name}' must be a table")
    return value


def _optional_str(table: dict[str, Any], key: str) -> str | None:
    value = table.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ProjectFileError(f"'{key}' must be a string")
    return value


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_trivia(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def _toml_key(key: str) -> str:
    if key and all(ch.isalnum() or ch in "-_" for ch in key):
        return key
    return toml_string(key)


def toml_string(value: str) -> str:
    """Quote ``value`` as a TOML basic string."""
    escaped = []
    for ch in value:
        if ch in _TOML_ESCAPES:
            escaped.append(_TOML_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            escaped.append(f"\\u{ord(ch):04X}")
        else:
            escaped.append(ch)
    return '"' + "".join(escaped) + '"'
