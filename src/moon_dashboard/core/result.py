"""Result records that make up a dashboard snapshot.

Everything here is frozen: a record is built once, appended to its
parent list and then only ever serialized.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from moon_dashboard.core.source import Source


class Status(str, Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"


class Backend(str, Enum):
    """Compilation backends, in matrix order."""

    WASM = "wasm"
    WASM_GC = "wasm-gc"
    JS = "js"

    @property
    def field(self) -> str:
        """BackendState attribute holding this backend's result."""
        return self.value.replace("-", "_")


class Operation(str, Enum):
    """Toolchain operations, in matrix order."""

    CHECK = "check"
    BUILD = "build"
    TEST = "test"


class ToolChainLabel(str, Enum):
    STABLE = "Stable"
    BLEEDING = "Bleeding"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class ExecuteResult(_Record):
    """Outcome of one matrix cell.

    elapsed is in milliseconds. It is 0 when the command could not be
    started; a command that ran and failed keeps its partial time.
    """

    status: Status
    start_time: datetime
    elapsed: int = 0

    @property
    def success(self) -> bool:
        return self.status is Status.SUCCESS


class BackendState(_Record):
    """One operation across all three backends."""

    wasm: ExecuteResult
    wasm_gc: ExecuteResult
    js: ExecuteResult

    def get(self, backend: Backend) -> ExecuteResult:
        return getattr(self, backend.field)


class CBT(_Record):
    """Check, build and test results for one checkout."""

    check: BackendState
    build: BackendState
    test: BackendState

    def get(self, operation: Operation) -> BackendState:
        return getattr(self, operation.value)

    def cells(self) -> list[ExecuteResult]:
        """All nine results in matrix order."""
        return [
            self.get(op).get(backend)
            for op in Operation
            for backend in Backend
        ]


class BuildState(_Record):
    """One source's results on one channel.

    cells holds one entry per checkout target, in declared order;
    None marks a target whose checkout failed.
    """

    source_index: int
    cells: list[CBT | None] = Field(default_factory=list)


class ToolChainVersion(_Record):
    label: ToolChainLabel
    moon_version: str
    moonc_version: str


class ChannelReport(_Record):
    """Everything one channel pass produced."""

    toolchain: ToolChainVersion
    data: list[BuildState] = Field(default_factory=list)


class MoonBuildDashboard(_Record):
    """One run's snapshot; appended as a single JSON line."""

    run_id: str
    run_number: str
    start_time: datetime
    sources: list[Source]
    stable: ChannelReport
    bleeding: ChannelReport

    @model_validator(mode="after")
    def _check_alignment(self) -> "MoonBuildDashboard":
        for position, source in enumerate(self.sources):
            if source.index != position:
                raise ValueError(
                    f"source at position {position} has index {source.index}"
                )
        for report in (self.stable, self.bleeding):
            indices = [state.source_index for state in report.data]
            if indices != list(range(len(self.sources))):
                raise ValueError(
                    f"{report.toolchain.label.value} data does not align "
                    f"with sources: {indices}"
                )
        return self

    def to_json_line(self) -> str:
        return self.model_dump_json() + "\n"
