"""Check/build/test matrix over every backend."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from moon_dashboard.core.errors import CommandError
from moon_dashboard.core.log import logger
from moon_dashboard.core.result import (
    CBT,
    Backend,
    BackendState,
    ExecuteResult,
    Operation,
    Status,
)
from moon_dashboard.core.runner import Runner, render


class MatrixRunner:
    """Run the full operation x backend matrix in one working directory.

    Cells run one at a time in a fixed order: check, build, test, and
    within each wasm, wasm-gc, js. A best-effort `moon clean` precedes
    every cell so no cell reuses another's build artifacts. Nothing
    here raises for a failing command; failures become data.

    Args:
        runner: Runner used for every toolchain process
        commands: The `moon` command templates
        env: Environment for toolchain processes (MOON_HOME, PATH)
        timeout: Timeout for one cell in seconds
        log_dir: Where to keep each cell's output, if anywhere
        clock: Monotonic clock in seconds, for timing
    """

    def __init__(
        self,
        runner: Runner,
        commands: dict[str, str],
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        log_dir: Path | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.runner = runner
        self.commands = commands
        self.env = env
        self.timeout = timeout
        self.log_dir = log_dir
        self.clock = clock

    def clean(self, workdir: Path) -> None:
        """Remove build artifacts; the outcome is ignored."""
        try:
            self.runner.execute(
                self.commands["clean"], cwd=workdir, env=self.env, check=False
            )
        except CommandError as e:
            logger.debug("Ignoring failed clean", error=str(e))

    def _log_file(self, operation: Operation, backend: Backend) -> Path | None:
        if self.log_dir is None:
            return None
        stamp = datetime.now().strftime('%Y%m%d-%H%M%S-%f')
        return self.log_dir / f"{operation.value}-{backend.value}-{stamp}.log"

    def run_cell(
        self, workdir: Path, operation: Operation, backend: Backend
    ) -> ExecuteResult:
        """Run one cell; Success iff the command exits 0."""
        self.clean(workdir)

        command = render(self.commands[operation.value], backend=backend.value)
        logger.info(f"RUN {command}", workdir=str(workdir))

        start_time = datetime.now().astimezone()
        started = self.clock()
        try:
            result = self.runner.execute(
                command,
                cwd=workdir,
                timeout=self.timeout,
                log_file=self._log_file(operation, backend),
                log_level="debug",
                env=self.env,
                check=False,
            )
        except CommandError as e:
            logger.warn("{command} did not start", command=command, error=str(e))
            return ExecuteResult(
                status=Status.FAILURE, start_time=start_time, elapsed=0
            )

        elapsed = int((self.clock() - started) * 1000)
        if result.exited == 0:
            logger.info(f"{command}, elapsed: {elapsed}ms")
            status = Status.SUCCESS
        else:
            logger.warn(
                f"{command} failed with status {result.exited}, "
                f"elapsed: {elapsed}ms"
            )
            status = Status.FAILURE

        return ExecuteResult(status=status, start_time=start_time, elapsed=elapsed)

    def run(self, workdir: Path) -> CBT:
        """Run all nine cells and bundle them."""
        states = {}
        for operation in Operation:
            with logger.span(f"moon {operation.value}", workdir=str(workdir)):
                states[operation.value] = BackendState(**{
                    backend.field: self.run_cell(workdir, operation, backend)
                    for backend in Backend
                })
        return CBT(**states)
