"""RunChannel node - one full pass over the sources on one channel."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from moon_dashboard.core.config import State
from moon_dashboard.core.log import logger
from moon_dashboard.core.result import ChannelReport, ToolChainLabel


@dataclass
class RunChannel(BaseNode[State]):
    """Install a channel and build every source on it."""

    label: ToolChainLabel

    def _needs_resolution(self, ctx: GraphRunContext[State]) -> bool:
        if self.label is ToolChainLabel.STABLE:
            return True
        return ctx.state.config.run.reresolve_sources

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "RunChannel | Finalize":
        """Run the channel pass and store its report.

        Sources are resolved after the stable channel's `moon update`,
        since `latest` is read from the index it writes. The bleeding
        pass reuses that list unless reresolve_sources is set.

        Returns:
            RunChannel: The bleeding pass, after the stable one
            Finalize: After the bleeding pass
        """
        from moon_dashboard.workflow.channel import ToolchainSetup

        stat = ctx.state.runtime.stat
        setup = ToolchainSetup(
            label=self.label,
            skip_install=stat.skip_install,
            skip_update=stat.skip_update,
        )

        with logger.span(f"{self.label.value} channel"):
            toolchain = stat.aggregator.setup(setup)

            if self._needs_resolution(ctx):
                from moon_dashboard.sources.resolver import resolve

                logger.info(f"Resolving sources for {self.label.value}")
                stat.registry.reload()
                stat.sources = resolve(stat.repo_url, stat.file, stat.registry)

            data = stat.aggregator.build_all(stat.sources, self.label)

        report = ChannelReport(toolchain=toolchain, data=data)
        if self.label is ToolChainLabel.STABLE:
            stat.stable = report
            return RunChannel(ToolChainLabel.BLEEDING)

        stat.bleeding = report
        from moon_dashboard.workflow.nodes.finalize import Finalize
        return Finalize()
