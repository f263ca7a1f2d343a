"""Exception hierarchy for dashboard runs.

Fatal errors abort the whole run and no snapshot is written.
CheckoutError on its own is recoverable: the aggregator records an
empty cell for the revision and moves on. Command errors are raised
by the runner and never reach the snapshot directly.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for every error raised by moon-dashboard."""


class FatalError(DashboardError):
    """An error after which no result of the run is meaningful."""


class InputError(FatalError):
    """The source list file could not be read."""


class VersionResolutionError(FatalError):
    """A registry package name has no known versions."""

    def __init__(self, name: str):
        super().__init__(f"unknown mooncake: {name}")
        self.name = name


class ToolchainError(FatalError):
    """Installing, updating or querying the toolchain failed."""


class CheckoutError(DashboardError):
    """One revision or version could not be materialized."""

    def __init__(self, message: str, locator: str | None = None):
        super().__init__(message)
        self.locator = locator


class CloneError(CheckoutError, FatalError):
    """The initial clone of a git source failed."""


class CommandError(DashboardError):
    """Base class for external command failures."""

    def __init__(self, command: str, message: str):
        super().__init__(f"{message}: {command}")
        self.command = command


class CommandStartError(CommandError):
    """The command could not be started at all."""

    def __init__(self, command: str, reason: str = "could not start"):
        super().__init__(command, reason)


class CommandFailedError(CommandError):
    """The command ran and exited with a non-zero status."""

    def __init__(self, command: str, exited: int, stderr: str = ""):
        super().__init__(command, f"exited with status {exited}")
        self.exited = exited
        self.stderr = stderr


class CommandOutputError(CommandError):
    """The command output was not valid UTF-8 text."""

    def __init__(self, command: str):
        super().__init__(command, "output is not valid UTF-8")


__all__ = [
    "DashboardError",
    "FatalError",
    "InputError",
    "VersionResolutionError",
    "ToolchainError",
    "CheckoutError",
    "CloneError",
    "CommandError",
    "CommandStartError",
    "CommandFailedError",
    "CommandOutputError",
]
