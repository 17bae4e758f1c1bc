from m2m.logging import Logger, LogLevel


class LoggerStub(Logger):
    """
    """

    def log(self, _level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        """
        """
        pass

    def push_level(self, level: LogLevel) -> None:
        """
        """
        pass

    def pop_level(self) -> LogLevel:
        """
        """
        return LogLevel.INFO


class RecordingLogger(Logger):
    """
    Keeps ``(level, message)`` pairs so tests can assert on what was reported.
    """

    def __init__(self):
        self.records: list[tuple[LogLevel, str]] = []

    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        self.records.append((level, " ".join(str(arg) for arg in args)))

    def push_level(self, level: LogLevel) -> None:
        pass

    def pop_level(self) -> LogLevel:
        return LogLevel.INFO

    def messages(self, level: LogLevel) -> list[str]:
        return [message for record_level, message in self.records if record_level == level]


logger_stub = LoggerStub()
