"""Git operations used to provision checkouts."""

from __future__ import annotations

from pathlib import Path

from moon_dashboard.core.errors import CheckoutError, CloneError, CommandError
from moon_dashboard.core.log import logger
from moon_dashboard.core.runner import Runner, render
from moon_dashboard.core.source import HEAD


class Git:
    """Thin wrapper running the configured git command templates.

    Args:
        runner: Runner used for every git process
        commands: The `git` section of the command templates
        timeout: Timeout for clone/checkout in seconds
    """

    def __init__(
        self,
        runner: Runner,
        commands: dict[str, str],
        timeout: int | None = None,
    ):
        self.runner = runner
        self.commands = commands
        self.timeout = timeout

    def clone(self, url: str, dest: Path) -> Path:
        """Clone url into dest.

        Raises:
            CloneError: If git could not be started or exited non-zero
        """
        logger.info(f"Cloning {url}", dest=str(dest))
        command = render(self.commands["clone"], url=url, dest=dest.name)
        try:
            self.runner.execute(
                command, cwd=dest.parent, timeout=self.timeout, check=True
            )
        except CommandError as e:
            raise CloneError(f"failed to clone {url}: {e}", url) from e
        return dest

    def checkout(self, workdir: Path, rev: str | None) -> None:
        """Check out rev in workdir; HEAD or None leaves the clone as is.

        Raises:
            CheckoutError: If the checkout fails
        """
        if rev is None or rev == HEAD:
            logger.debug("Using cloned default branch", workdir=str(workdir))
            return

        command = render(self.commands["checkout"], rev=rev)
        try:
            self.runner.execute(
                command, cwd=workdir, timeout=self.timeout, check=True
            )
        except CommandError as e:
            raise CheckoutError(f"failed to checkout {rev}: {e}", rev) from e

    def branch_name(self, workdir: Path) -> str:
        return self.runner.output(self.commands["branch_name"], cwd=workdir)

    def short_hash(self, workdir: Path) -> str:
        return self.runner.output(self.commands["short_hash"], cwd=workdir)

    def describe(self, workdir: Path) -> str:
        """branch@hash for log lines; never raises."""
        try:
            return f"{self.branch_name(workdir)}@{self.short_hash(workdir)}"
        except CommandError as e:
            logger.debug("Could not describe checkout", error=str(e))
            return "unknown"
