"""Lock file model: one ``name=version`` line per explicitly installed package."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, NamedTuple

from m2m.errors import M2MError


class LockEntry(NamedTuple):
    name: str
    version: str


class LockFileParseError(M2MError):
    """Raised for a non-blank lock file line that isn't ``name=version``."""

    def __init__(self, line_number: int, line: str):
        super().__init__(f"Malformed lock file entry on line {line_number}: {line!r}")
        self.line_number = line_number
        self.line = line


def serialize(entries: Iterable[tuple[str, str]]) -> str:
    """Render entries in the given order, one ``name=version`` per line.

    Raises:
        ValueError: If a name or version is empty or would not parse back
    """
    lines = []
    for name, version in entries:
        if not _is_field(name) or not _is_field(version):
            raise ValueError(f"Invalid lock file entry: {name!r}={version!r}")
        lines.append(f"{name}={version}\n")
    return "".join(lines)


def parse(text: str) -> list[LockEntry]:
    """Parse lock file text, preserving entry order.

    Blank lines are skipped. Any other line must contain exactly one ``=``
    with a non-empty name and version on either side; whitespace around
    the separator is ignored.

    Raises:
        LockFileParseError: With the 1-based number of the first bad line
    """
    entries = []
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        parts = [part.strip() for part in line.split("=")]
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise LockFileParseError(line_number, raw)

        entries.append(LockEntry(parts[0], parts[1]))

    return entries


def load(path: Path) -> list[LockEntry]:
    """Read a lock file; a missing file has no entries."""
    if not path.exists():
        return []
    return parse(path.read_text(encoding="utf-8"))


def save(path: Path, entries: Iterable[tuple[str, str]]) -> None:
    path.write_text(serialize(entries), encoding="utf-8", newline="\n")


def _is_field(value: str) -> bool:
    return bool(value) and "=" not in value and not any(ch.isspace() for ch in value)
