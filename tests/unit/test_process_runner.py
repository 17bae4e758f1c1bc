"""Unit tests for process_runner module."""

import subprocess
import sys
import unittest
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from helpers.logging import logger_stub
from helpers.process_runner import MockProcessRunner
from m2m.process_runner import (
    SHELL_NOT_FOUND_EXIT_CODE,
    PassthroughProcessRunner,
    ProcessRunner,
    ShellCommandRunner,
    SilentProcessRunner,
    StderrOnlyProcessRunner,
    StdoutOnlyProcessRunner,
    TaskOutputTypes,
    make_process_runner,
    stream_output,
)


class TestProcessRunner(unittest.TestCase):
    def test_process_runner_is_abstract(self):
        """
        ProcessRunner cannot be instantiated directly.
        """
        with self.assertRaises(TypeError):
            ProcessRunner(logger_stub)


class TestPassthroughProcessRunner(unittest.TestCase):
    def test_run_returns_completed_process(self):
        """
        run() executes command and returns CompletedProcess.
        """
        result = PassthroughProcessRunner(logger_stub).run(
            [sys.executable, "-c", "print('test')"], capture_output=True, text=True
        )

        self.assertIsInstance(result, subprocess.CompletedProcess)
        self.assertEqual(result.returncode, 0)
        self.assertEqual(result.stdout.strip(), "test")

    def test_run_propagates_exit_code(self):
        result = PassthroughProcessRunner(logger_stub).run(
            [sys.executable, "-c", "import sys; sys.exit(3)"]
        )
        self.assertEqual(result.returncode, 3)


class TestSilentProcessRunner(unittest.TestCase):
    def test_output_is_discarded_even_when_capture_requested(self):
        result = SilentProcessRunner(logger_stub).run(
            [sys.executable, "-c", "print('hidden')"], capture_output=True, text=True
        )

        self.assertEqual(result.returncode, 0)
        self.assertIsNone(result.stdout)


class TestStreamingProcessRunners(unittest.TestCase):
    SCRIPT = "import sys; print('to-out'); print('to-err', file=sys.stderr)"

    def test_stdout_only(self):
        with patch("sys.stdout", new_callable=StringIO) as out:
            result = StdoutOnlyProcessRunner(logger_stub).run([sys.executable, "-c", self.SCRIPT])

        self.assertEqual(result.returncode, 0)
        self.assertIn("to-out", out.getvalue())
        self.assertNotIn("to-err", out.getvalue())

    def test_stderr_only(self):
        with patch("sys.stderr", new_callable=StringIO) as err:
            result = StderrOnlyProcessRunner(logger_stub).run([sys.executable, "-c", self.SCRIPT])

        self.assertEqual(result.returncode, 0)
        self.assertIn("to-err", err.getvalue())
        self.assertNotIn("to-out", err.getvalue())

    def test_check_raises_on_failure(self):
        with patch("sys.stdout", new_callable=StringIO):
            with self.assertRaises(subprocess.CalledProcessError):
                StdoutOnlyProcessRunner(logger_stub).run(
                    [sys.executable, "-c", "import sys; sys.exit(4)"], check=True
                )


class TestStreamOutput(unittest.TestCase):
    def test_copies_every_line(self):
        target = StringIO()
        stream_output(StringIO("one\ntwo\n"), target)
        self.assertEqual(target.getvalue(), "one\ntwo\n")

    def test_none_pipe_is_ignored(self):
        target = StringIO()
        stream_output(None, target)
        self.assertEqual(target.getvalue(), "")


class TestMakeProcessRunner(unittest.TestCase):
    def test_factory_covers_every_output_type(self):
        expected = {
            TaskOutputTypes.ALL: PassthroughProcessRunner,
            TaskOutputTypes.NONE: SilentProcessRunner,
            TaskOutputTypes.OUT: StdoutOnlyProcessRunner,
            TaskOutputTypes.ERR: StderrOnlyProcessRunner,
        }
        for output_type, runner_class in expected.items():
            with self.subTest(output_type=output_type):
                self.assertIsInstance(make_process_runner(output_type, logger_stub), runner_class)

    def test_invalid_type(self):
        with self.assertRaises(ValueError):
            make_process_runner("loud", logger_stub)


class TestShellCommandRunner(unittest.TestCase):
    def test_runs_login_shell_with_environment(self):
        process_runner = MockProcessRunner(logger_stub, returncode=5)
        env = {"MSYSTEM": "UCRT64"}
        runner = ShellCommandRunner(Path("/msys64/usr/bin/bash"), env, process_runner, logger_stub)

        exit_code = runner.run("make all", Path("/work"))

        self.assertEqual(exit_code, 5)
        args, kwargs = process_runner.calls[0]
        self.assertEqual(args[0], [str(Path("/msys64/usr/bin/bash")), "-l", "-c", "make all"])
        self.assertEqual(kwargs, {"cwd": Path("/work"), "env": env})

    def test_missing_shell(self):
        runner = ShellCommandRunner(
            Path("/nonexistent/bash"), {}, PassthroughProcessRunner(logger_stub), logger_stub
        )

        self.assertEqual(runner.run("true", Path.cwd()), SHELL_NOT_FOUND_EXIT_CODE)


if __name__ == "__main__":
    unittest.main()
