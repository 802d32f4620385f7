"""Wall-clock timeout supervision for running sessions."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from enum import StrEnum

import structlog

logger = structlog.get_logger(__name__)

MIN_POLL_INTERVAL_SECONDS = 0.01
MAX_POLL_INTERVAL_SECONDS = 1.0
POLL_FRACTION = 0.1


class SupervisorState(StrEnum):
    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"
    DISARMED = "disarmed"


def default_poll_interval(timeout_seconds: float) -> float:
    """Poll a fraction of the timeout so overrun stays small relative to it."""

    return min(
        max(timeout_seconds * POLL_FRACTION, MIN_POLL_INTERVAL_SECONDS),
        MAX_POLL_INTERVAL_SECONDS,
    )


class TimeoutSupervisor:
    """Call `on_timeout` once if the deadline passes before `stop()`."""

    def __init__(
        self,
        timeout_seconds: float,
        on_timeout: Callable[[], None],
        *,
        poll_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")
        if poll_interval is not None and poll_interval <= 0:
            raise ValueError("poll_interval must be > 0 when provided.")

        self.timeout_seconds = timeout_seconds
        self.poll_interval = (
            poll_interval if poll_interval is not None else default_poll_interval(timeout_seconds)
        )
        self._on_timeout = on_timeout
        self._clock = clock
        self._state = SupervisorState.IDLE
        self._state_lock = threading.Lock()
        self._stopped = threading.Event()
        self._started_at = 0.0
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    def start(self) -> None:
        with self._state_lock:
            if self._state != SupervisorState.IDLE:
                raise RuntimeError(f"Cannot arm supervisor in state '{self._state}'.")
            self._state = SupervisorState.ARMED
            self._started_at = self._clock()
            self._thread = threading.Thread(
                target=self._poll,
                name="shellkit-timeout",
                daemon=True,
            )
        self._thread.start()

    def stop(self) -> None:
        """Disarm the supervisor; safe after firing or after the process exited."""

        with self._state_lock:
            if self._state in {SupervisorState.IDLE, SupervisorState.ARMED}:
                self._state = SupervisorState.DISARMED
            thread = self._thread
        self._stopped.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _poll(self) -> None:
        while not self._stopped.wait(self.poll_interval):
            elapsed = self._clock() - self._started_at
            if elapsed > self.timeout_seconds:
                self._fire(elapsed)
                return

    def _fire(self, elapsed: float) -> None:
        with self._state_lock:
            if self._state != SupervisorState.ARMED:
                return
            self._state = SupervisorState.FIRED
        logger.warning(
            "Process exceeded timeout; terminating.",
            elapsed_seconds=round(elapsed, 3),
            timeout_seconds=self.timeout_seconds,
        )
        # Called outside the state lock; it takes the session lock.
        self._on_timeout()
