"""One end-to-end command execution with live capture and timeout."""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

import structlog

from shellkit.lib.exec.aggregator import OutputAggregator
from shellkit.lib.exec.handlers import StreamHandler
from shellkit.lib.exec.process import (
    PipeSource,
    ProcessFault,
    exit_status,
    signal_terminate,
    spawn,
    wait,
)
from shellkit.lib.exec.timeout import TimeoutSupervisor

logger = structlog.get_logger(__name__)

# Exit status reported when the real one could not be read.
UNKNOWN_EXIT_STATUS = -1

# Stripped from every child environment; it makes some toolchains emit
# debugger noise on stderr.
CHILD_ENV_DENYLIST = frozenset({"OS_ACTIVITY_DT_MODE"})


def build_child_env(
    base_env: Mapping[str, str],
    env_overrides: Mapping[str, str] | None,
) -> dict[str, str]:
    """Overlay overrides onto the inherited environment."""

    child_env = dict(base_env)
    if env_overrides is not None:
        child_env.update(env_overrides)
    for key in CHILD_ENV_DENYLIST:
        child_env.pop(key, None)
    return child_env


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    """Raw result of one session, before error classification."""

    exit_status: int
    stdout: bytes
    stderr: bytes
    fault: ProcessFault | None = None


def _drain(source: PipeSource, aggregator: OutputAggregator) -> None:
    while True:
        chunk = source.read_available()
        if chunk is None:
            return
        aggregator.append(chunk)


class ProcessSession:
    """Own one launched process, its drain threads and its timeout."""

    def __init__(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str],
        output_handler: StreamHandler | None = None,
        error_handler: StreamHandler | None = None,
        timeout_seconds: float | None = None,
        poll_interval: float | None = None,
        on_release: Callable[[ProcessSession], None] | None = None,
    ) -> None:
        if not argv:
            raise ValueError("Cannot start session: argv is empty.")

        self._argv = tuple(argv)
        self._env = dict(env)
        self._timeout_seconds = timeout_seconds
        self._poll_interval = poll_interval
        self._on_release = on_release

        self._lock = threading.RLock()
        self._stdout = OutputAggregator(self._lock, name="stdout", handler=output_handler)
        self._stderr = OutputAggregator(self._lock, name="stderr", handler=error_handler)
        self._process: subprocess.Popen[bytes] | None = None
        self._launched = False
        self._fault: ProcessFault | None = None
        self._supervisor: TimeoutSupervisor | None = None
        self._started = False

    @property
    def launched(self) -> bool:
        return self._launched

    @property
    def supervisor(self) -> TimeoutSupervisor | None:
        return self._supervisor

    def terminate(self) -> None:
        """Ask the running process to stop; no-op unless it is launched."""

        with self._lock:
            if self._launched and self._process is not None:
                signal_terminate(self._process)

    def run(self) -> SessionOutcome:
        if self._started:
            raise RuntimeError("A session can only run once.")
        self._started = True

        try:
            return self._execute()
        finally:
            with self._lock:
                self._launched = False
                self._process = None
            if self._on_release is not None:
                self._on_release(self)

    def _record_fault(self, fault: ProcessFault) -> None:
        with self._lock:
            if self._fault is None:
                self._fault = fault

    def _assemble(self, status: int) -> SessionOutcome:
        with self._lock:
            return SessionOutcome(
                exit_status=status,
                stdout=self._stdout.data,
                stderr=self._stderr.data,
                fault=self._fault,
            )

    def _execute(self) -> SessionOutcome:
        spawned = spawn(self._argv, env=self._env)
        if isinstance(spawned, ProcessFault):
            self._record_fault(spawned)
            self._stdout.finish()
            self._stderr.finish()
            return self._assemble(UNKNOWN_EXIT_STATUS)

        process = spawned
        with self._lock:
            self._process = process
            self._launched = True
        logger.debug("Process launched.", pid=process.pid, argv=list(self._argv))

        if process.stdout is None or process.stderr is None:
            self._record_fault(
                ProcessFault(
                    step="spawn",
                    error=RuntimeError("Subprocess did not expose stdout/stderr pipes."),
                )
            )
            signal_terminate(process)
            wait(process)
            self._stdout.finish()
            self._stderr.finish()
            return self._assemble(UNKNOWN_EXIT_STATUS)
        sources = (PipeSource(process.stdout), PipeSource(process.stderr))
        drains = [
            threading.Thread(
                target=_drain,
                args=(source, aggregator),
                name=f"shellkit-drain-{aggregator.name}",
                daemon=True,
            )
            for source, aggregator in zip(sources, (self._stdout, self._stderr), strict=True)
        ]
        for drain in drains:
            drain.start()

        if self._timeout_seconds is not None and self._timeout_seconds > 0:
            self._supervisor = TimeoutSupervisor(
                self._timeout_seconds,
                self.terminate,
                poll_interval=self._poll_interval,
            )
            self._supervisor.start()

        try:
            wait_fault = wait(process)
            if wait_fault is not None:
                self._record_fault(wait_fault)
                # Drains only end once the child closes its pipes.
                signal_terminate(process)
        except BaseException:
            signal_terminate(process)
            raise
        finally:
            if self._supervisor is not None:
                self._supervisor.stop()
            for drain in drains:
                drain.join()
            self._stdout.finish()
            self._stderr.finish()
            for source in sources:
                source.close()

        status = exit_status(process)
        if isinstance(status, ProcessFault):
            self._record_fault(status)
            status = UNKNOWN_EXIT_STATUS
        logger.debug("Process exited.", pid=process.pid, exit_status=status)
        return self._assemble(status)
