"""Test doubles for the runner and the registry."""

from pathlib import Path

from invoke import Result

from moon_dashboard.core.errors import (
    CommandFailedError,
    CommandStartError,
    VersionResolutionError,
)

MOON_COMMANDS = {
    "clean": "moon clean",
    "check": "moon check -q --target {backend}",
    "build": "moon build -q --target {backend}",
    "test": "moon test -q --build-only --target {backend}",
    "update": "moon update",
    "version": "moon version",
    "moonc_version": "moonc -v",
}
GIT_COMMANDS = {
    "clone": "git clone --quiet {url} {dest}",
    "checkout": "git checkout --quiet {rev}",
    "branch_name": "git rev-parse --abbrev-ref HEAD",
    "short_hash": "git rev-parse --short HEAD",
}
ARCHIVE_COMMANDS = {
    "download": "curl --fail --silent --show-error --location -o {dest} {url}",
    "unpack": "unzip -q -o {archive} -d {dest}",
}
INSTALL_COMMANDS = {
    "stable": "curl -fsSL https://cli.moonbitlang.com/install/unix.sh | bash",
    "bleeding": (
        "curl -fsSL https://cli.moonbitlang.com/install/unix.sh | bash -s bleeding"
    ),
}
BASE_URL = "https://mooncakes.example.com/user"


class FakeRunner:
    """Runner double that records commands instead of running them.

    Exit codes and stdout are scripted by substring: the first key
    found in a command decides its outcome. Commands matching an
    `unstartable` entry behave as if the program did not exist.
    """

    def __init__(self, outcomes=None, outputs=None, unstartable=()):
        self.calls: list[tuple[str, Path | None]] = []
        self.outcomes = dict(outcomes or {})
        self.outputs = dict(outputs or {})
        self.unstartable = list(unstartable)

    @staticmethod
    def _lookup(table, command, default):
        for key, value in table.items():
            if key in command:
                return value
        return default

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self.calls]

    def execute(
        self,
        command,
        cwd=None,
        timeout=None,
        stdin=None,
        log_file=None,
        log_level=None,
        check=True,
        env=None,
    ):
        self.calls.append((command, cwd))
        if any(key in command for key in self.unstartable):
            raise CommandStartError(command)

        exited = self._lookup(self.outcomes, command, 0)
        stdout = self._lookup(self.outputs, command, "")
        if check and exited != 0:
            raise CommandFailedError(command, exited)
        return Result(stdout=stdout, command=command, exited=exited)

    def output(self, command, cwd=None, env=None):
        return self.execute(command, cwd=cwd, env=env).stdout.strip()


class StubRegistry:
    """Registry double answering latest_version from a dict."""

    def __init__(self, latest=None):
        self.latest = dict(latest or {})
        self.lookups: list[str] = []
        self.reloads = 0

    def reload(self):
        self.reloads += 1

    def latest_version(self, name):
        self.lookups.append(name)
        if name not in self.latest:
            raise VersionResolutionError(name)
        return self.latest[name]

