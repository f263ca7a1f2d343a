"""Command execution using invoke library with custom extensions."""

import contextlib
import os
import shlex
from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut, ThreadException

from moon_dashboard.core.errors import (
    CommandFailedError,
    CommandOutputError,
    CommandStartError,
)
from moon_dashboard.core.log import logger

# Exit statuses the shell reports when the program itself never ran
NOT_EXECUTABLE = 126
NOT_FOUND = 127


def render(template: str, **params) -> str:
    """Fill a command template, shell-quoting every parameter."""
    return template.format(
        **{key: shlex.quote(str(value)) for key, value in params.items()}
    )


class Runner(Context):
    """invoke.Context with the execution helpers used across the
    dashboard.

    Every external process (git, curl, unzip, moon, moonc and the
    toolchain installers) goes through execute() so that exit status
    handling and output logging behave the same everywhere.
    """

    def kill(self) -> None:
        """Kill the running subprocess.

        invoke's implementation sends signal.SIGKILL, which does not
        exist on Windows. os.kill() there accepts a plain number and
        forwards it to TerminateProcess(), so use 9 directly.
        """
        import platform

        if platform.system() == "Windows":
            pid = self.pid if self.using_pty else self.process.pid
            with contextlib.suppress(ProcessLookupError):
                os.kill(pid, 9)
            return

        super().kill()

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        stdin: str | None = None,
        log_file: Path | None = None,
        log_level: str | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Execute a command with full control over execution
        parameters.

        Args:
            command: Command string to execute through the shell
            cwd: Working directory for command execution
            timeout: Maximum execution time in seconds
            stdin: String to send to command's stdin
            log_file: Path to write combined stdout/stderr output
            log_level: Log level for echoing output lines
            check: If True, raise on non-zero exit code
            env: Environment variables layered over os.environ

        Returns:
            invoke.Result with stdout, stderr, exited (return code).
            A timed out command is returned with exited == -1.

        Raises:
            CommandStartError: If the process could not be started
            CommandFailedError: If check=True and the exit code is
                non-zero
        """
        kwargs = {
            "hide": True,
            "warn": True,
            "in_stream": False,
        }

        if timeout:
            kwargs["timeout"] = timeout

        if stdin:
            kwargs["in_stream"] = stdin

        if env:
            kwargs["env"] = env

        logger.spew("Executing command", command=command, cwd=str(cwd))

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1
        except (OSError, ThreadException) as e:
            raise CommandStartError(command, str(e)) from e

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            log_file.write_text(result.stdout + result.stderr)

        if log_level:
            for line in result.stdout.splitlines():
                logger.log(log_level, "{line}", line=line.rstrip())
            for line in result.stderr.splitlines():
                logger.log(log_level, "{line}", line=line.rstrip())

        if result.exited in (NOT_EXECUTABLE, NOT_FOUND):
            raise CommandStartError(
                command, result.stderr.strip() or "command not found"
            )

        if check and result.exited != 0:
            raise CommandFailedError(command, result.exited, result.stderr)

        return result

    def output(
        self,
        command: str,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> str:
        """Run a command and return its stripped stdout.

        Raises:
            CommandStartError: If the process could not be started
            CommandFailedError: If the exit code is non-zero
            CommandOutputError: If stdout was not valid UTF-8
        """
        result = self.execute(command, cwd=cwd, env=env, check=True)
        # invoke decodes with errors="replace"
        if "\ufffd" in result.stdout:
            raise CommandOutputError(command)
        return result.stdout.strip()
