"""Tests for ChannelAggregator."""

import pytest
from doubles import FakeRunner

from moon_dashboard.core.errors import CloneError, ToolchainError
from moon_dashboard.core.result import Status, ToolChainLabel
from moon_dashboard.core.source import GitSource, RegistrySource
from moon_dashboard.workflow.channel import ToolchainSetup

VERSIONS = {"moon version": "moon 0.1.20241018\n", "moonc -v": "v0.1.20241018\n"}


def test_registry_source_builds_all_cells(make_aggregator, fake_runner):
    aggregator = make_aggregator(fake_runner)
    source = RegistrySource(name="moonbitlang/core", versions=["0.1.0"], index=0)

    toolchain, data = aggregator.run_channel(
        [source], ToolchainSetup(label=ToolChainLabel.STABLE)
    )

    assert toolchain.label is ToolChainLabel.STABLE
    assert toolchain.moon_version == "moon 0.1.20241018"
    assert toolchain.moonc_version == "v0.1.20241018"
    [state] = data
    assert state.source_index == 0
    [cbt] = state.cells
    assert [cell.status for cell in cbt.cells()] == [Status.SUCCESS] * 9


def test_failed_checkout_leaves_empty_cell(make_aggregator):
    runner = FakeRunner(outcomes={"checkout --quiet badrev": 1}, outputs=VERSIONS)
    aggregator = make_aggregator(runner)
    source = GitSource(
        url="https://example.com/a.git", revisions=["badrev", "c1"], index=0
    )

    state = aggregator.build(source)

    assert len(state.cells) == 2
    assert state.cells[0] is None
    assert state.cells[1] is not None
    assert runner.commands.count("moon build -q --target js") == 1


def test_empty_revisions_build_default_branch_once(make_aggregator, fake_runner):
    aggregator = make_aggregator(fake_runner)
    source = GitSource(url="https://example.com/a.git", index=0)

    state = aggregator.build(source)

    assert len(state.cells) == 1
    assert state.cells[0] is not None
    assert not any("git checkout" in c for c in fake_runner.commands)


def test_data_follows_source_order(make_aggregator, fake_runner):
    aggregator = make_aggregator(fake_runner)
    sources = [
        GitSource(url="https://example.com/a.git", revisions=["c1"], index=0),
        RegistrySource(name="moonbitlang/x", versions=["0.4.5", "0.4.6"], index=1),
    ]

    _, data = aggregator.run_channel(
        sources, ToolchainSetup(label=ToolChainLabel.BLEEDING)
    )

    assert [state.source_index for state in data] == [0, 1]
    assert [len(state.cells) for state in data] == [1, 2]


def test_channel_setup_order(make_aggregator, fake_runner):
    aggregator = make_aggregator(fake_runner)

    aggregator.run_channel([], ToolchainSetup(label=ToolChainLabel.BLEEDING))

    assert fake_runner.commands == [
        "curl -fsSL https://cli.moonbitlang.com/install/unix.sh | bash -s bleeding",
        "moon update",
        "moon version",
        "moonc -v",
    ]


def test_skip_flags(make_aggregator, fake_runner):
    aggregator = make_aggregator(fake_runner)
    setup = ToolchainSetup(
        label=ToolChainLabel.STABLE, skip_install=True, skip_update=True
    )

    aggregator.run_channel([], setup)

    assert fake_runner.commands == ["moon version", "moonc -v"]


def test_install_failure_is_fatal(make_aggregator):
    runner = FakeRunner(outcomes={"unix.sh": 1}, outputs=VERSIONS)
    aggregator = make_aggregator(runner)
    source = RegistrySource(name="moonbitlang/core", versions=["0.1.0"], index=0)

    with pytest.raises(ToolchainError):
        aggregator.run_channel(
            [source], ToolchainSetup(label=ToolChainLabel.STABLE)
        )

    assert not any(c.startswith("moon check") for c in runner.commands)


def test_version_query_failure_is_fatal(make_aggregator):
    runner = FakeRunner(unstartable=["moonc"], outputs=VERSIONS)
    aggregator = make_aggregator(runner)
    setup = ToolchainSetup(
        label=ToolChainLabel.STABLE, skip_install=True, skip_update=True
    )

    with pytest.raises(ToolchainError):
        aggregator.run_channel([], setup)


def test_clone_failure_is_fatal(make_aggregator):
    runner = FakeRunner(outcomes={"git clone": 128}, outputs=VERSIONS)
    aggregator = make_aggregator(runner)
    source = GitSource(
        url="https://example.com/gone.git", revisions=["c1"], index=0
    )

    with pytest.raises(CloneError):
        aggregator.build(source)


def test_single_bad_revision(make_aggregator):
    runner = FakeRunner(outcomes={"checkout --quiet badrev": 1}, outputs=VERSIONS)
    aggregator = make_aggregator(runner)
    source = GitSource(url="https://example.com/x.git", revisions=["badrev"], index=0)

    _, data = aggregator.run_channel(
        [source], ToolchainSetup(label=ToolChainLabel.STABLE)
    )

    assert data[0].cells == [None]
    assert not any(c.startswith("moon check") for c in runner.commands)


def test_bad_revision_does_not_stop_later_sources(make_aggregator):
    runner = FakeRunner(outcomes={"checkout --quiet badrev": 1}, outputs=VERSIONS)
    aggregator = make_aggregator(runner)
    sources = [
        GitSource(url="https://example.com/x.git", revisions=["badrev"], index=0),
        RegistrySource(name="moonbitlang/core", versions=["0.5.0"], index=1),
    ]

    _, data = aggregator.run_channel(
        sources, ToolchainSetup(label=ToolChainLabel.STABLE)
    )

    assert data[0].cells == [None]
    [cbt] = data[1].cells
    assert [cell.status for cell in cbt.cells()] == [Status.SUCCESS] * 9


def test_setup_then_build_all(make_aggregator, fake_runner):
    aggregator = make_aggregator(fake_runner)
    source = RegistrySource(name="moonbitlang/core", versions=["0.5.0"], index=0)

    version = aggregator.setup(ToolchainSetup(label=ToolChainLabel.BLEEDING))
    setup_commands = list(fake_runner.commands)
    data = aggregator.build_all([source], ToolChainLabel.BLEEDING)

    assert version.label is ToolChainLabel.BLEEDING
    assert setup_commands[-2:] == ["moon version", "moonc -v"]
    assert [state.source_index for state in data] == [0]
    assert not any("unix.sh" in c for c in fake_runner.commands[len(setup_commands):])
