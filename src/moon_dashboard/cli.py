#!/usr/bin/env python3
"""moon-dashboard CLI - MoonBit toolchain compatibility dashboard."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from moon_dashboard.command.stat import StatCommand
from moon_dashboard.core.config import State
from moon_dashboard.core.log import logger


class CliState(State):
    """Build mooncakes and git repositories on the stable and
    bleeding MoonBit toolchains and record the results.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.output.path value)
    2. moon-dashboard.yaml in the current directory, the user config
       directory, and --include files
    3. .env file
    4. Environment variables
       (MOON_DASHBOARD_CONFIG__OUTPUT__PATH=value)
    """

    stat: CliSubCommand[StatCommand]

    def cli_cmd(self):
        """Dispatch to the subcommand, or show help without one."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
