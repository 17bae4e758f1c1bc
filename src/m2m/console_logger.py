from rich.console import Console

from m2m.logging import Logger, LogLevel

# Printed on the error console
_ERROR_LEVELS = (LogLevel.FATAL, LogLevel.ERROR)


class ConsoleLogger(Logger):
    """Logger that prints Rich markup and renderables to the terminal.

    A message is shown when its level is at or above the severity of the
    level on top of the stack. ERROR and FATAL go to ``error_console``.
    """

    def __init__(
        self,
        console: Console,
        level: LogLevel = LogLevel.INFO,
        error_console: Console | None = None,
    ) -> None:
        """
        Args:
            console: Destination for everything below ERROR
            level: Base log level that can never be popped
            error_console: Destination for ERROR and FATAL; ``console`` if omitted
        """
        self._console = console
        self._error_console = error_console or console
        self._levels = [level]

    @property
    def level(self) -> LogLevel:
        return self._levels[-1]

    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        if level.value > self.level.value:
            return
        console = self._error_console if level in _ERROR_LEVELS else self._console
        console.print(*args, **kwargs)

    def push_level(self, level: LogLevel) -> None:
        self._levels.append(level)

    def pop_level(self) -> LogLevel:
        """
        Raises:
            RuntimeError: If only the base level is left
        """
        if len(self._levels) == 1:
            raise RuntimeError("Cannot pop the base log level")
        return self._levels.pop()
