"""
Heartbeat monitoring.

A background thread that periodically reports liveness to the server and
raises the run's cancellation signal when the server says the job-step
should stop.
"""

import logging
import threading
from typing import Optional

from ..models.api import JobStepState
from ..validation import ErrorSeverity, ReportingError, handle_error
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


class HeartbeatMonitor:
    """
    Polls the server's heartbeat endpoint on a fixed interval.

    The monitor is the only writer of ``cancel_event``. It sets it at most
    once, then stops polling. Failed heartbeats are logged and counted but
    never end the run.
    """

    def __init__(self, client, interval: float, cancel_event: threading.Event):
        self.client = client
        self.interval = interval
        self.cancel_event = cancel_event
        self.beats = 0
        self.failures = 0
        self.last_state: Optional[JobStepState] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Heartbeat monitor already started")
        self._thread = threading.Thread(target=self._run, name="heartbeat-monitor", daemon=True)
        self._thread.start()
        logger.debug(f"Heartbeat monitor started (interval {self.interval}s)")

    def stop(self) -> None:
        """
        Stop polling and wait for the thread to exit.

        Returns only once the thread is gone, so an in-flight heartbeat is
        waited out; callers bound that wait through the client's timeout.
        Does not touch ``cancel_event``.
        """
        self._stop_event.set()
        if self._thread is None:
            return
        self._thread.join(timeout=TimeoutConstants.HEARTBEAT_JOIN_TIMEOUT)
        if self._thread.is_alive():
            logger.warning("Heartbeat monitor still waiting on the server, "
                           "waiting for the in-flight heartbeat to return")
            self._thread.join()
        logger.debug(f"Heartbeat monitor stopped after {self.beats} beat(s), "
                     f"{self.failures} failure(s)")

    def beat(self) -> bool:
        """
        Send one heartbeat. Returns True if the run should stop.
        """
        try:
            state = self.client.heartbeat()
        except (ReportingError, ValueError) as e:
            self.failures += 1
            handle_error(e, "heartbeat", ErrorSeverity.WARNING, reraise=False, logger=logger)
            return False

        self.beats += 1
        self.last_state = state
        if not state.should_stop:
            return False

        if self._stop_event.is_set():
            # The run already ended; a late answer must not cancel anything.
            return True
        if not self.cancel_event.is_set():
            logger.info(f"Server reports job-step status={state.status} result={state.result}, "
                        f"cancelling run")
            self.cancel_event.set()
        return True

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            if self.beat():
                break
