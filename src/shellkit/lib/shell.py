"""Public shell facade: configuration, sync/async run and termination."""

from __future__ import annotations

import asyncio
import os
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import structlog

from shellkit.lib.config.settings import DEFAULT_SHELL, ShellkitSettings
from shellkit.lib.exec.errors import (
    UNKNOWN_ERROR_MESSAGE,
    EmptyOutputError,
    NativeFaultError,
    NonZeroExitError,
)
from shellkit.lib.exec.handlers import StreamHandler
from shellkit.lib.exec.session import ProcessSession, SessionOutcome, build_child_env

logger = structlog.get_logger(__name__)

# Characters trimmed from both ends of command output.
NEWLINE_CHARACTERS = "\n\r\x0b\x0c\x85\u2028\u2029"

Completion = Callable[[str | None, Exception | None], None]


@dataclass(slots=True)
class ShellConfig:
    """Mutable shell configuration.

    Safe to change between runs. Callers must not mutate it from one thread
    while another thread's `run` is reading it.
    """

    shell: str = DEFAULT_SHELL
    env: dict[str, str] = field(default_factory=dict)
    output_handler: StreamHandler | None = None
    error_handler: StreamHandler | None = None
    poll_interval: float | None = None
    default_timeout: float | None = None


def _decode_error_message(stderr: bytes) -> str:
    try:
        message = stderr.decode("utf-8").strip(NEWLINE_CHARACTERS)
    except UnicodeDecodeError:
        return UNKNOWN_ERROR_MESSAGE
    return message or UNKNOWN_ERROR_MESSAGE


def outcome_to_output(outcome: SessionOutcome) -> str:
    """Map a session outcome to trimmed stdout or raise a `ShellError`."""

    if outcome.fault is not None:
        raise NativeFaultError(outcome.fault.error) from outcome.fault.error
    if outcome.exit_status != 0:
        raise NonZeroExitError(outcome.exit_status, _decode_error_message(outcome.stderr))
    try:
        output = outcome.stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EmptyOutputError() from exc
    return output.strip(NEWLINE_CHARACTERS)


class Shell:
    """Run commands through an interpreter as `<shell> -c <command>`."""

    def __init__(
        self,
        shell: str = DEFAULT_SHELL,
        env: Mapping[str, str] | None = None,
        *,
        output_handler: StreamHandler | None = None,
        error_handler: StreamHandler | None = None,
        poll_interval: float | None = None,
        default_timeout: float | None = None,
    ) -> None:
        self.config = ShellConfig(
            shell=shell,
            env=dict(env or {}),
            output_handler=output_handler,
            error_handler=error_handler,
            poll_interval=poll_interval,
            default_timeout=default_timeout,
        )
        self._lock = threading.Lock()
        self._current: ProcessSession | None = None

    @classmethod
    def from_settings(
        cls,
        settings: ShellkitSettings,
        *,
        output_handler: StreamHandler | None = None,
        error_handler: StreamHandler | None = None,
    ) -> Shell:
        return cls(
            settings.shell,
            settings.env_overrides,
            output_handler=output_handler,
            error_handler=error_handler,
            poll_interval=settings.poll_interval_seconds,
            default_timeout=settings.timeout_seconds,
        )

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._current is not None

    def terminate(self) -> None:
        """Signal the current session's process; no-op when nothing runs."""

        with self._lock:
            session = self._current
        if session is not None:
            session.terminate()

    def _release(self, session: ProcessSession) -> None:
        with self._lock:
            if self._current is session:
                self._current = None

    def run(self, command: str, timeout: float | None = None) -> str:
        """Run `command` and return its stdout without surrounding newlines.

        Raises `NativeFaultError`, `NonZeroExitError` or `EmptyOutputError`.
        A timed-out command surfaces as `NonZeroExitError` carrying the
        signal exit status.
        """

        config = self.config
        resolved_timeout = timeout if timeout is not None else config.default_timeout
        session = ProcessSession(
            (config.shell, "-c", command),
            env=build_child_env(os.environ, config.env),
            output_handler=config.output_handler,
            error_handler=config.error_handler,
            timeout_seconds=resolved_timeout,
            poll_interval=config.poll_interval,
            on_release=self._release,
        )
        with self._lock:
            self._current = session

        logger.debug(
            "Running shell command.",
            shell=config.shell,
            timeout_seconds=resolved_timeout,
        )
        outcome = session.run()
        return outcome_to_output(outcome)

    def run_in_background(
        self,
        command: str,
        completion: Completion,
        *,
        timeout: float | None = None,
    ) -> threading.Thread:
        """Run on a worker thread and report through `completion` exactly once."""

        def _worker() -> None:
            try:
                output = self.run(command, timeout=timeout)
            except Exception as exc:
                completion(None, exc)
                return
            completion(output, None)

        thread = threading.Thread(target=_worker, name="shellkit-run", daemon=True)
        thread.start()
        return thread

    async def arun(self, command: str, timeout: float | None = None) -> str:
        return await asyncio.to_thread(self.run, command, timeout)
