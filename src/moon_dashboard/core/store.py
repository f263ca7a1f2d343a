"""JSON-lines snapshot log."""

from __future__ import annotations

from pathlib import Path

from moon_dashboard.core.log import logger
from moon_dashboard.core.result import MoonBuildDashboard


def append_snapshot(path: Path, dashboard: MoonBuildDashboard) -> None:
    """Append dashboard as one line, creating the file if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(dashboard.to_json_line())
    logger.info(f"Appended snapshot for run {dashboard.run_id} to {path}")


def read_snapshots(path: Path) -> list[MoonBuildDashboard]:
    """Every snapshot in the log, oldest first."""
    with open(path, encoding="utf-8") as f:
        return [
            MoonBuildDashboard.model_validate_json(line)
            for line in f
            if line.strip()
        ]
