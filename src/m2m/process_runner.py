"""Process execution abstraction layer.

``ProcessRunner`` wraps ``subprocess.run`` with a choice of output handling.
``CommandRunner`` sits on top of it and is what the task executor talks to:
one shell command in, one exit code out.
"""

from __future__ import annotations

import subprocess
import sys
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from threading import Thread
from typing import Any

from m2m.logging import Logger

__all__ = [
    "CommandRunner",
    "ProcessRunner",
    "PassthroughProcessRunner",
    "SilentProcessRunner",
    "ShellCommandRunner",
    "StdoutOnlyProcessRunner",
    "StderrOnlyProcessRunner",
    "TaskOutputTypes",
    "make_process_runner",
    "stream_output",
]

SHELL_NOT_FOUND_EXIT_CODE = 127


class TaskOutputTypes(Enum):
    """Which streams of a task's commands reach the terminal."""

    ALL = "all"
    NONE = "none"
    OUT = "out"
    ERR = "err"


class ProcessRunner(ABC):
    """
    Abstract interface for running subprocess commands.
    """

    def __init__(self, logger: Logger) -> None:
        self._logger = logger

    @abstractmethod
    def run(self, *args: Any, **kwargs: Any) -> subprocess.CompletedProcess[Any]:
        """
        Run a subprocess command.

        The signature matches subprocess.run() so implementations can be
        swapped without changing call sites.

        Raises:
            subprocess.CalledProcessError: If check=True and process exits non-zero
            subprocess.TimeoutExpired: If timeout is exceeded
        """
        ...


class PassthroughProcessRunner(ProcessRunner):
    """
    Process runner that directly delegates to subprocess.run.
    """

    def run(self, *args: Any, **kwargs: Any) -> subprocess.CompletedProcess[Any]:
        return subprocess.run(*args, **kwargs)


class SilentProcessRunner(ProcessRunner):
    """
    Process runner that discards all subprocess output.
    """

    def run(self, *args: Any, **kwargs: Any) -> subprocess.CompletedProcess[Any]:
        kwargs.pop("capture_output", None)
        kwargs["stdout"] = subprocess.DEVNULL
        kwargs["stderr"] = subprocess.DEVNULL
        return subprocess.run(*args, **kwargs)


def stream_output(pipe: Any, target: Any) -> None:
    """
    Copy lines from a pipe to a target stream until the pipe closes.

    I/O errors end the copy quietly; they happen when the process is killed
    or the target is closed underneath us.
    """
    if pipe:
        try:
            for line in pipe:
                target.write(line)
                target.flush()
        except (OSError, ValueError):
            pass


class _StreamingProcessRunner(ProcessRunner):
    """
    Streams one of the child's output streams line by line and discards the other.

    The call stays synchronous for the caller; a helper thread does the copying.
    """

    streams_stdout: bool = True
    join_timeout_secs = 1.0

    def run(self, *args: Any, **kwargs: Any) -> subprocess.CompletedProcess[Any]:
        check = kwargs.pop("check", False)
        timeout = kwargs.pop("timeout", None)
        kwargs.pop("capture_output", None)

        if self.streams_stdout:
            kwargs["stdout"] = subprocess.PIPE
            kwargs["stderr"] = subprocess.DEVNULL
        else:
            kwargs["stdout"] = subprocess.DEVNULL
            kwargs["stderr"] = subprocess.PIPE
        kwargs["text"] = True
        kwargs["bufsize"] = 1

        process = subprocess.Popen(*args, **kwargs)
        pipe = process.stdout if self.streams_stdout else process.stderr
        target = sys.stdout if self.streams_stdout else sys.stderr
        thread = Thread(
            target=stream_output,
            args=(pipe, target),
            name="stdout-streamer" if self.streams_stdout else "stderr-streamer",
        )
        thread.start()

        try:
            return_code = process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
            raise
        finally:
            thread.join(timeout=self.join_timeout_secs)
            if pipe:
                pipe.close()

        if thread.is_alive():
            self._logger.warn(
                f"Stream thread did not complete within timeout of {self.join_timeout_secs} seconds"
            )

        command = args[0] if args else kwargs.get("args", [])
        if check and return_code != 0:
            raise subprocess.CalledProcessError(return_code, command)

        return subprocess.CompletedProcess(args=command, returncode=return_code)


class StdoutOnlyProcessRunner(_StreamingProcessRunner):
    """
    Process runner that streams stdout while suppressing stderr.
    """

    streams_stdout = True


class StderrOnlyProcessRunner(_StreamingProcessRunner):
    """
    Process runner that streams stderr while suppressing stdout.
    """

    streams_stdout = False


def make_process_runner(output_type: TaskOutputTypes, logger: Logger) -> ProcessRunner:
    """
    Factory function for creating ProcessRunner instances.

    Raises:
        ValueError: If an invalid TaskOutputTypes value is provided
    """
    match output_type:
        case TaskOutputTypes.ALL:
            return PassthroughProcessRunner(logger)
        case TaskOutputTypes.NONE:
            return SilentProcessRunner(logger)
        case TaskOutputTypes.OUT:
            return StdoutOnlyProcessRunner(logger)
        case TaskOutputTypes.ERR:
            return StderrOnlyProcessRunner(logger)
        case _:
            raise ValueError(f"Invalid TaskOutputTypes: {output_type}")


class CommandRunner(ABC):
    """
    Runs one shell command to completion and reports its exit code.
    """

    @abstractmethod
    def run(self, command: str, working_dir: Path) -> int:
        ...


class ShellCommandRunner(CommandRunner):
    """
    Runs commands through ``<shell> -l -c`` with a fixed environment.
    """

    def __init__(
        self,
        shell: Path,
        env: dict[str, str],
        process_runner: ProcessRunner,
        logger: Logger,
    ) -> None:
        self._shell = shell
        self._env = env
        self._process_runner = process_runner
        self._logger = logger

    def run(self, command: str, working_dir: Path) -> int:
        self._logger.debug(f"[dim]$ {command}[/dim]")
        try:
            result = self._process_runner.run(
                [str(self._shell), "-l", "-c", command],
                cwd=working_dir,
                env=self._env,
            )
        except FileNotFoundError:
            self._logger.error(f"[red]Shell not found: {self._shell}[/red]")
            return SHELL_NOT_FOUND_EXIT_CODE
        return result.returncode
