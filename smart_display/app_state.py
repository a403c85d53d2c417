"""
Shared application state.

AppState is the single exclusion domain for the frame configuration and the
transient sensor readings. HTTP handlers, the rotation scheduler and the
sensor ingest loop all go through it; each operation holds the lock only for
its own read-modify-write (plus the config save for mutations) and never
across network I/O or sleeps.
"""

import math
import random
import threading
import logging
from datetime import datetime, tzinfo
from typing import Optional

from smart_display.config_manager import ConfigManager, FrameConfig
from smart_display.exceptions import UnknownUrlError
from smart_display.logging_config import get_logger, log_config_change
from smart_display.sensor_service import SensorReadings
from smart_display.snapshots import (
    ImageIndexSnapshot,
    PollingSnapshot,
    build_index_snapshot,
    build_polling_snapshot,
    current_time,
)


class AppState:
    """
    Lock-guarded frame configuration plus sensor readings.

    Mutations are persisted through the ConfigManager while the lock is
    still held, so a ConfigSaveError reaches the caller before any other
    thread can observe the new state. The in-memory change is kept even
    when the save fails.
    """

    def __init__(
        self,
        config: FrameConfig,
        config_manager: ConfigManager,
        timezone: Optional[tzinfo] = None
    ) -> None:
        self.logger: logging.Logger = get_logger(__name__)
        self.config_manager = config_manager
        self.timezone = timezone
        self._config = config.copy()
        self._readings = SensorReadings()
        self._lock = threading.Lock()

    # Projections

    def polling_snapshot(self, now: Optional[datetime] = None) -> PollingSnapshot:
        if now is None:
            now = current_time(self.timezone)
        with self._lock:
            return build_polling_snapshot(self._config, self._readings, now)

    def index_snapshot(self) -> ImageIndexSnapshot:
        with self._lock:
            return build_index_snapshot(self._config)

    def config_copy(self) -> FrameConfig:
        with self._lock:
            return self._config.copy()

    def readings(self) -> SensorReadings:
        with self._lock:
            return self._readings

    # Mutations

    def modify(self, url: Optional[str] = None, duration_secs: Optional[float] = None) -> None:
        """
        Apply a partial update and persist it.

        The url must be a candidate right now. A URL that was removed from
        the set can stay displayed, but cannot be selected again until it
        is re-added.

        Args:
            url: New current selection; must be a member of the candidate set
            duration_secs: New rotation interval (non-negative)

        Raises:
            ValueError: negative or non-finite duration
            UnknownUrlError: url is not a candidate
            ConfigSaveError: persisting failed (in-memory change is kept)
        """
        if duration_secs is not None and (math.isnan(duration_secs) or math.isinf(duration_secs)
                                          or duration_secs < 0):
            raise ValueError(f"duration_secs must be a non-negative number, got {duration_secs}")

        with self._lock:
            if url is not None and url not in self._config.urls:
                raise UnknownUrlError("URL is not in the candidate set", url=url)

            before = self._config.to_dict()
            if url is not None:
                self._config.url = url
            if duration_secs is not None:
                self._config.duration_secs = float(duration_secs)

            log_config_change(
                self.logger, 'frame', 'update',
                before={'url': before['url'], 'durationSecs': before['durationSecs']},
                after={'url': self._config.url or '', 'durationSecs': self._config.duration_secs}
            )
            self.config_manager.save(self._config)

    def add_url(self, url: str) -> bool:
        """
        Add a candidate URL (set semantics) and persist.

        Returns:
            True if the URL was not already present
        """
        with self._lock:
            added = url not in self._config.urls
            self._config.urls.add(url)
            if added:
                log_config_change(self.logger, 'urls', 'add', after=url)
            self.config_manager.save(self._config)
            return added

    def remove_url(self, url: str) -> bool:
        """
        Remove a candidate URL and persist.

        The current selection is left untouched even if it matches.

        Returns:
            True if the URL was present
        """
        with self._lock:
            removed = url in self._config.urls
            self._config.urls.discard(url)
            if removed:
                log_config_change(self.logger, 'urls', 'remove', before=url)
            self.config_manager.save(self._config)
            return removed

    def rotate(self, rng: random.Random) -> float:
        """
        Pick a new current URL uniformly at random from the candidates.

        Leaves the selection unchanged when there are no candidates. The
        pick is not persisted.

        Returns:
            The rotation interval to sleep before the next pick
        """
        with self._lock:
            if self._config.urls:
                self._config.url = rng.choice(sorted(self._config.urls))
                self.logger.debug(f"Rotated to {self._config.url}")
            return self._config.duration_secs

    def update_readings(self, readings: SensorReadings) -> None:
        with self._lock:
            self._readings = readings
