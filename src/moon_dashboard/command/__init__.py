"""CLI command modules for moon-dashboard."""

from moon_dashboard.command.stat import StatCommand

__all__ = ["StatCommand"]
