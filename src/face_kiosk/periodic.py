"""Cancellable periodic background task."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run a function on a fixed interval in a background thread.

    The function runs once immediately, then again ``interval`` seconds
    after each run finishes, so two runs never overlap. Exceptions are
    logged and the schedule continues.
    """

    def __init__(
        self,
        func: Callable[[], object],
        interval: float,
        name: str = "PeriodicTask",
    ):
        """Initialize periodic task.

        Args:
            func: Callable invoked on every tick
            interval: Seconds to wait between the end of one run and the next
            name: Thread name, also used in log messages
        """
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.func = func
        self.interval = interval
        self.name = name

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "PeriodicTask":
        """Start the background thread."""
        if self.is_running:
            return self

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name=self.name,
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Started {self.name} (every {self.interval:g}s)")
        return self

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the thread to stop and wait for an in-flight run.

        Args:
            timeout: Maximum time to wait for the thread to finish
        """
        self._stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"{self.name} did not stop within {timeout}s")
            self._thread = None
            logger.info(f"Stopped {self.name}")

    def run_once(self) -> bool:
        """Run the function synchronously.

        Returns:
            True if the run finished without raising
        """
        with self._run_lock:
            try:
                self.func()
                return True
            except Exception:
                logger.exception(f"{self.name} run failed")
                return False

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_once()
            if self._stop_event.wait(self.interval):
                break
