"""Initialize node - collaborators, run metadata and sources."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime

from pydantic_graph import BaseNode, GraphRunContext

from moon_dashboard.core.config import Config, State
from moon_dashboard.core.log import logger
from moon_dashboard.core.result import ToolChainLabel


def build_registry(config: Config):
    from moon_dashboard.registry.index import RegistryIndex

    return RegistryIndex.from_moon_home(
        config.toolchain.moon_home, config.registry.exclude_publishers
    )


def build_aggregator(config: Config):
    """Wire the real toolchain, provisioner and matrix runner."""
    from moon_dashboard.checkout.provisioner import Provisioner
    from moon_dashboard.core.runner import Runner
    from moon_dashboard.runner.matrix import MatrixRunner
    from moon_dashboard.runner.toolchain import Toolchain
    from moon_dashboard.workflow.channel import ChannelAggregator

    runner = Runner()
    env = config.toolchain.environment()
    return ChannelAggregator(
        toolchain=Toolchain(
            runner,
            config.commands["install"],
            config.commands["moon"],
            env=env,
            timeout=config.toolchain.timeout,
        ),
        provisioner=Provisioner(
            runner,
            config.commands["git"],
            config.commands["archive"],
            config.registry.base_url,
            timeout=config.toolchain.timeout,
        ),
        matrix=MatrixRunner(
            runner,
            config.commands["moon"],
            env=env,
            timeout=config.matrix.timeout,
            log_dir=config.matrix.log_dir,
        ),
    )


@dataclass
class Initialize(BaseNode[State]):
    """Record run metadata and wire the collaborators."""

    async def run(self, ctx: GraphRunContext[State]) -> "RunChannel":
        """Sources are resolved later, once `moon update` has filled the
        registry index.

        Returns:
            RunChannel: The stable channel pass
        """
        config = ctx.state.config
        stat = ctx.state.runtime.stat

        stat.run_id = os.environ.get(config.run.run_id_env, "0")
        stat.run_number = os.environ.get(config.run.run_number_env, "0")
        stat.start_time = datetime.now().astimezone()
        stat.status = "running"

        if stat.registry is None:
            stat.registry = build_registry(config)
        if stat.aggregator is None:
            stat.aggregator = build_aggregator(config)

        logger.info(
            f"Starting run {stat.run_id} (#{stat.run_number})",
            repo_url=stat.repo_url,
            file=str(stat.file) if stat.file else None,
        )

        from moon_dashboard.workflow.nodes.run_channel import RunChannel
        return RunChannel(ToolChainLabel.STABLE)
