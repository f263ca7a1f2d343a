"""Materialize source checkouts in throwaway directories."""

from __future__ import annotations

import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from moon_dashboard.core.errors import CheckoutError
from moon_dashboard.core.log import logger
from moon_dashboard.core.runner import Runner
from moon_dashboard.core.source import GitSource, RegistrySource, Source
from moon_dashboard.git.repo import Git
from moon_dashboard.registry.archive import download_to


class Checkout(Protocol):
    """Per-source handle that turns a target into a working directory."""

    def provision(self, target: str | None) -> Path:
        """Return a working directory for target.

        Raises:
            CheckoutError: If target cannot be materialized
        """
        ...


class GitCheckout:
    """Revisions of one clone, checked out in turn."""

    def __init__(self, git: Git, workdir: Path):
        self.git = git
        self.workdir = workdir

    def provision(self, target: str | None) -> Path:
        self.git.checkout(self.workdir, target)
        logger.info(
            f"Checked out {self.git.describe(self.workdir)}",
            target=target,
        )
        return self.workdir


class RegistryCheckout:
    """Versions of one mooncake, each downloaded on its own."""

    def __init__(
        self,
        provisioner: Provisioner,
        source: RegistrySource,
        tmp: Path,
    ):
        self.provisioner = provisioner
        self.source = source
        self.tmp = tmp

    def provision(self, target: str | None) -> Path:
        if target is None:
            raise CheckoutError(f"{self.source.name} has no version to fetch")
        return download_to(
            self.provisioner.runner,
            self.provisioner.archive_commands,
            self.provisioner.base_url,
            self.source.name,
            target,
            self.tmp,
            timeout=self.provisioner.timeout,
        )


class Provisioner:
    """Opens one temporary directory per source.

    Everything provisioned for a source lives in that directory and is
    removed when the open() block exits, whatever happened inside.

    Args:
        runner: Runner for git, curl and unzip
        git_commands: The `git` command templates
        archive_commands: The `archive` command templates
        base_url: Registry download base URL
        tmp_root: Parent for temporary directories (system default
            when None)
        timeout: Timeout for each fetch command in seconds
    """

    def __init__(
        self,
        runner: Runner,
        git_commands: dict[str, str],
        archive_commands: dict[str, str],
        base_url: str,
        tmp_root: Path | None = None,
        timeout: int | None = None,
    ):
        self.runner = runner
        self.git = Git(runner, git_commands, timeout=timeout)
        self.archive_commands = archive_commands
        self.base_url = base_url
        self.tmp_root = tmp_root
        self.timeout = timeout

    @contextmanager
    def open(self, source: Source) -> Iterator[Checkout]:
        """Prepare source for provisioning.

        Git sources are cloned here, so a failed clone surfaces as
        CloneError before any revision is attempted.

        Raises:
            CloneError: If a git source cannot be cloned
        """
        with tempfile.TemporaryDirectory(
            prefix="moon-dashboard-", dir=self.tmp_root
        ) as tmp:
            tmp_path = Path(tmp)
            match source:
                case GitSource(url=url):
                    workdir = self.git.clone(url, tmp_path / "repo")
                    yield GitCheckout(self.git, workdir)
                case RegistrySource():
                    yield RegistryCheckout(self, source, tmp_path)
                case _:
                    raise TypeError(f"unsupported source: {source!r}")
