"""Stat command - run the full channel matrix and record a snapshot."""

from pathlib import Path

from pydantic import BaseModel, Field

from moon_dashboard.core.errors import FatalError
from moon_dashboard.core.log import logger


class StatCommand(BaseModel):
    """Build every source on the stable and bleeding toolchains.

    Sources come from --repo-url and/or --file. Each is checked,
    built and tested on the wasm, wasm-gc and js backends, and the
    results are appended as one JSON line to the output log.
    Failing builds are recorded; only toolchain, input and clone
    failures stop the run.
    """

    repo_url: str | None = Field(
        default=None,
        alias="repo-url",
        description="Git repository to build at its default branch",
    )
    file: Path | None = Field(
        default=None,
        description=(
            "Source list: one git URL or mooncake name per line, "
            "optionally followed by revisions or versions"
        ),
    )
    skip_install: bool = Field(
        default=False,
        alias="skip-install",
        description="Use the installed toolchain instead of installing each channel",
    )
    skip_update: bool = Field(
        default=False,
        alias="skip-update",
        description="Do not run `moon update` before each channel",
    )

    async def run_workflow(self, state: "State") -> int:
        """Run the stat workflow.

        Args:
            state: State instance with config loaded

        Returns:
            Exit code (0=snapshot written, 1=fatal error)
        """
        stat = state.runtime.stat
        stat.repo_url = self.repo_url
        stat.file = self.file
        stat.skip_install = self.skip_install
        stat.skip_update = self.skip_update

        from pydantic_graph import End

        from moon_dashboard.workflow.graph import create_workflow
        from moon_dashboard.workflow.nodes.initialize import Initialize

        workflow = create_workflow()

        try:
            async with workflow.iter(Initialize(), state=state) as run:
                async for node in run:
                    if isinstance(node, End):
                        logger.info(
                            f"Run complete: {len(node.data.sources)} sources"
                        )
                        return 0
        except FatalError as e:
            stat.status = "failed"
            logger.error("Run aborted: {error}", error=str(e))
            return 1

        logger.error("Run failed - workflow ended unexpectedly")
        return 1
