"""Toolchain channel installation and version capture."""

from __future__ import annotations

from moon_dashboard.core.errors import CommandError, ToolchainError
from moon_dashboard.core.log import logger
from moon_dashboard.core.result import ToolChainLabel, ToolChainVersion
from moon_dashboard.core.runner import Runner

INSTALLERS = {
    ToolChainLabel.STABLE: "stable",
    ToolChainLabel.BLEEDING: "bleeding",
}


class Toolchain:
    """Switches the moon toolchain between channels.

    Args:
        runner: Runner for installer and moon processes
        install_commands: The `install` templates, keyed by channel
        moon_commands: The `moon` templates (update, version,
            moonc_version)
        env: Environment for every process (MOON_HOME, PATH)
        timeout: Timeout for installer and update in seconds
    """

    def __init__(
        self,
        runner: Runner,
        install_commands: dict[str, str],
        moon_commands: dict[str, str],
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ):
        self.runner = runner
        self.install_commands = install_commands
        self.moon_commands = moon_commands
        self.env = env
        self.timeout = timeout

    def _run(self, command: str, what: str) -> None:
        try:
            self.runner.execute(
                command,
                env=self.env,
                timeout=self.timeout,
                log_level="debug",
                check=True,
            )
        except CommandError as e:
            raise ToolchainError(f"{what} failed: {e}") from e

    def install(self, label: ToolChainLabel) -> None:
        """Install the release for label.

        Raises:
            ToolchainError: If the installer fails
        """
        logger.info(f"Installing {label.value} toolchain")
        self._run(
            self.install_commands[INSTALLERS[label]],
            f"{label.value} toolchain install",
        )

    def update(self) -> None:
        """Refresh the registry index with `moon update`.

        Raises:
            ToolchainError: If the update fails
        """
        logger.info("Updating registry index")
        self._run(self.moon_commands["update"], "moon update")

    def version(self, label: ToolChainLabel) -> ToolChainVersion:
        """Capture what the installed toolchain reports.

        Raises:
            ToolchainError: If moon or moonc cannot report a version
        """
        try:
            moon_version = self.runner.output(
                self.moon_commands["version"], env=self.env
            )
            moonc_version = self.runner.output(
                self.moon_commands["moonc_version"], env=self.env
            )
        except CommandError as e:
            raise ToolchainError(f"version query failed: {e}") from e

        logger.info(
            f"{label.value} toolchain ready",
            moon_version=moon_version,
            moonc_version=moonc_version,
        )
        return ToolChainVersion(
            label=label,
            moon_version=moon_version,
            moonc_version=moonc_version,
        )

    def setup(
        self,
        label: ToolChainLabel,
        skip_install: bool = False,
        skip_update: bool = False,
    ) -> ToolChainVersion:
        """Install and update the channel, then report its version."""
        if not skip_install:
            self.install(label)
        if not skip_update:
            self.update()
        return self.version(label)
