"""Logging infrastructure for m2m.

Every component that reports progress receives a ``Logger`` by injection so
that output can be filtered by level and replaced in tests.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod


class LogLevel(enum.Enum):
    """Log verbosity levels for m2m diagnostic messages.

    Lower numeric values represent higher severity / less verbosity.
    """
    FATAL = 0  # Only unrecoverable errors (unreadable project file, missing environment)
    ERROR = 1  # Fatal errors plus failed commands and package operations
    WARN = 2   # Errors plus soft conditions (package already/not in configuration)
    INFO = 3   # Warnings plus normal progress (default)
    DEBUG = 4  # Info plus resolved paths, execution order, pacman invocations
    TRACE = 5  # Debug plus fine-grained tracing


class Logger(ABC):
    """
    Abstract logger interface.

    Implementations decide where messages go; callers only pick a level.
    """

    @abstractmethod
    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        """
        Log a message at the given level.
        """
        ...

    @abstractmethod
    def push_level(self, level: LogLevel) -> None:
        """
        Temporarily change the active log level.
        """
        ...

    @abstractmethod
    def pop_level(self) -> LogLevel:
        """
        Restore the log level that was active before the last push.
        """
        ...

    def fatal(self, *args, **kwargs) -> None:
        self.log(LogLevel.FATAL, *args, **kwargs)

    def error(self, *args, **kwargs) -> None:
        self.log(LogLevel.ERROR, *args, **kwargs)

    def warn(self, *args, **kwargs) -> None:
        self.log(LogLevel.WARN, *args, **kwargs)

    def info(self, *args, **kwargs) -> None:
        self.log(LogLevel.INFO, *args, **kwargs)

    def debug(self, *args, **kwargs) -> None:
        self.log(LogLevel.DEBUG, *args, **kwargs)

    def trace(self, *args, **kwargs) -> None:
        self.log(LogLevel.TRACE, *args, **kwargs)


def parse_log_level(value: str) -> LogLevel:
    """
    Convert a CLI string (case-insensitive) to a LogLevel.

    Raises:
        ValueError: If the string names no level
    """
    try:
        return LogLevel[value.strip().upper()]
    except KeyError:
        valid = ", ".join(level.name.lower() for level in LogLevel)
        raise ValueError(f"Invalid log level '{value}'. Valid levels: {valid}") from None
