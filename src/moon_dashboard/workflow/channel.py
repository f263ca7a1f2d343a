"""Run every source against one toolchain channel."""

from __future__ import annotations

from pydantic import BaseModel

from moon_dashboard.checkout.provisioner import Provisioner
from moon_dashboard.core.errors import CheckoutError
from moon_dashboard.core.log import logger
from moon_dashboard.core.result import (
    BuildState,
    ToolChainLabel,
    ToolChainVersion,
)
from moon_dashboard.core.source import Source
from moon_dashboard.runner.matrix import MatrixRunner
from moon_dashboard.runner.toolchain import Toolchain


class ToolchainSetup(BaseModel):
    """Which channel to prepare and which preparation to skip."""

    label: ToolChainLabel
    skip_install: bool = False
    skip_update: bool = False


class ChannelAggregator:
    """Fold provisioning and matrix runs into per-source BuildStates.

    A checkout failure costs only its own cell (recorded as None).
    Toolchain and clone failures propagate and end the run.
    """

    def __init__(
        self,
        toolchain: Toolchain,
        provisioner: Provisioner,
        matrix: MatrixRunner,
    ):
        self.toolchain = toolchain
        self.provisioner = provisioner
        self.matrix = matrix

    def build(self, source: Source) -> BuildState:
        """Run the matrix for every target of source, in order.

        Raises:
            CloneError: If a git source cannot be cloned
        """
        cells = []
        with self.provisioner.open(source) as checkout:
            for target in source.targets:
                label = source.label(target)
                try:
                    workdir = checkout.provision(target)
                except CheckoutError as e:
                    logger.warn(
                        "Failed to checkout {label}", label=label, error=str(e)
                    )
                    cells.append(None)
                    continue

                with logger.span(f"matrix {label}"):
                    cells.append(self.matrix.run(workdir))

        return BuildState(source_index=source.index, cells=cells)

    def setup(self, setup: ToolchainSetup) -> ToolChainVersion:
        """Install and update the channel and capture its version.

        Raises:
            ToolchainError: If the channel cannot be installed, updated
                or queried
        """
        return self.toolchain.setup(
            setup.label,
            skip_install=setup.skip_install,
            skip_update=setup.skip_update,
        )

    def build_all(
        self, sources: list[Source], label: ToolChainLabel
    ) -> list[BuildState]:
        """Build every source, in order, on the installed channel.

        Raises:
            CloneError: If a git source cannot be cloned
        """
        data = []
        for source in sources:
            with logger.span(
                f"{label.value}: {source.label()}", index=source.index
            ):
                data.append(self.build(source))
        return data

    def run_channel(
        self, sources: list[Source], setup: ToolchainSetup
    ) -> tuple[ToolChainVersion, list[BuildState]]:
        """Prepare the channel, then build every source on it.

        Raises:
            ToolchainError: If the channel cannot be installed, updated
                or queried
            CloneError: If a git source cannot be cloned
        """
        version = self.setup(setup)
        return version, self.build_all(sources, setup.label)
