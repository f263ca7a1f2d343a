"""Finalize node - assemble the snapshot and append it to the log."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from moon_dashboard.core.config import State
from moon_dashboard.core.result import MoonBuildDashboard
from moon_dashboard.core.store import append_snapshot


@dataclass
class Finalize(BaseNode[State, None, MoonBuildDashboard]):
    """Build the MoonBuildDashboard and persist it."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> End[MoonBuildDashboard]:
        stat = ctx.state.runtime.stat
        if stat.stable is None or stat.bleeding is None:
            raise ValueError("Both channel passes must finish first")

        dashboard = MoonBuildDashboard(
            run_id=stat.run_id,
            run_number=stat.run_number,
            start_time=stat.start_time,
            sources=stat.sources,
            stable=stat.stable,
            bleeding=stat.bleeding,
        )
        append_snapshot(ctx.state.config.output.path, dashboard)

        stat.dashboard = dashboard
        stat.status = "complete"
        return End(dashboard)
