"""Pytest configuration and fixtures for moon-dashboard tests."""

import tempfile
from pathlib import Path

import pytest
from doubles import (
    ARCHIVE_COMMANDS,
    BASE_URL,
    GIT_COMMANDS,
    INSTALL_COMMANDS,
    MOON_COMMANDS,
    FakeRunner,
)

from moon_dashboard.core.log import ConsoleSink, setup_logger


def console_logging():
    """Console-only logging for test runs; nothing leaves the machine."""
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "moon-dashboard-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    console_logging()


@pytest.fixture
def restore_logging():
    """For tests that build a Config, which installs its own logger."""
    yield
    console_logging()


@pytest.fixture
def fake_runner():
    return FakeRunner(
        outputs={"moon version": "moon 0.1.20241018\n", "moonc -v": "v0.1.20241018\n"}
    )


@pytest.fixture
def make_aggregator(tmp_path):
    """Build a ChannelAggregator whose processes all go to runner."""
    from moon_dashboard.checkout.provisioner import Provisioner
    from moon_dashboard.runner.matrix import MatrixRunner
    from moon_dashboard.runner.toolchain import Toolchain
    from moon_dashboard.workflow.channel import ChannelAggregator

    def _make(runner):
        return ChannelAggregator(
            toolchain=Toolchain(runner, INSTALL_COMMANDS, MOON_COMMANDS),
            provisioner=Provisioner(
                runner, GIT_COMMANDS, ARCHIVE_COMMANDS, BASE_URL,
                tmp_root=tmp_path,
            ),
            matrix=MatrixRunner(runner, MOON_COMMANDS),
        )

    return _make
