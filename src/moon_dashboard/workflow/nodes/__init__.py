"""Workflow nodes for graph state machine."""

from moon_dashboard.workflow.nodes.finalize import Finalize
from moon_dashboard.workflow.nodes.initialize import Initialize
from moon_dashboard.workflow.nodes.run_channel import RunChannel

__all__ = [
    "Initialize",
    "RunChannel",
    "Finalize",
]
