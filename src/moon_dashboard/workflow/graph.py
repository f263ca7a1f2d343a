"""Graph workflow definition."""

from pydantic_graph import Graph

from moon_dashboard.core.config import State
from moon_dashboard.core.log import logger


def create_workflow():
    """Create the stat workflow graph.

    Initialize -> RunChannel(stable) -> RunChannel(bleeding) -> Finalize

    Returns:
        Graph workflow with State as state_type
    """
    logger.debug("Building workflow graph")

    # Node return annotations are resolved against this namespace
    from moon_dashboard.workflow.nodes.finalize import Finalize
    from moon_dashboard.workflow.nodes.initialize import Initialize
    from moon_dashboard.workflow.nodes.run_channel import RunChannel

    return Graph(
        nodes=(Initialize, RunChannel, Finalize),
        state_type=State,
    )
