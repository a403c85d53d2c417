import random
import threading
import logging
from typing import Optional

from smart_display.app_state import AppState
from smart_display.background import ERROR_BACKOFF_SECS, wait_for_stop
from smart_display.logging_config import get_logger


class RotationScheduler:
    """
    Periodically re-selects the displayed URL at random.

    Alternates between selecting (under the AppState lock) and sleeping for
    the configured rotation interval. An empty candidate set is a no-op.
    Intervals are not clamped; a zero duration loops tightly and very large
    ones are waited out in slices. An unexpected error in one step is
    logged and the loop carries on.
    """

    def __init__(self, app_state: AppState, rng: Optional[random.Random] = None):
        self.app_state = app_state
        self._rng = rng or random.Random()
        self.logger: logging.Logger = get_logger(__name__)
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        self._thread = threading.Thread(target=self._loop, name="RotationScheduler", daemon=True)
        self._thread.start()
        self.logger.info("Rotation scheduler started")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> float:
        """Run one selection step and return the interval to sleep."""
        return self.app_state.rotate(self._rng)

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                interval = self.run_once()
            except Exception as e:
                self.logger.error(f"Rotation step failed: {e}", exc_info=True)
                interval = ERROR_BACKOFF_SECS
            if wait_for_stop(self._stop_event, interval):
                break
