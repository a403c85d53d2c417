"""
Sensor Ingest Service

Background thread that periodically reads a small JSON readings file
(written by an external temperature/humidity sensor script) and merges the
values into the transient part of the shared state. Readings are never
persisted.

Failures to open or parse the file are logged and retried on the same fixed
interval; the loop never exits on its own.
"""

import json
import threading
import logging
from dataclasses import dataclass
from numbers import Real
from typing import Any, Dict, Optional, TYPE_CHECKING

from smart_display.background import wait_for_stop
from smart_display.exceptions import SensorReadError
from smart_display.logging_config import get_logger, log_warning

if TYPE_CHECKING:
    from smart_display.app_state import AppState

REQUIRED_FIELDS = ('temperature', 'humidity')


@dataclass(frozen=True)
class SensorReadings:
    """Last values merged from the sensor file; absent until the first read."""

    temperature: Optional[float] = None
    humidity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'temperature': self.temperature, 'humidity': self.humidity}


def _numeric(data: Dict[str, Any], name: str, sensor_path: str) -> float:
    if name not in data:
        raise SensorReadError(f"Missing required field '{name}'", sensor_path=sensor_path)
    value = data[name]
    # bool is a Real subclass
    if isinstance(value, bool) or not isinstance(value, Real):
        raise SensorReadError(
            f"Field '{name}' must be a number, got {type(value).__name__}",
            sensor_path=sensor_path
        )
    return float(value)


def read_sensor_file(sensor_path: str) -> SensorReadings:
    """
    Read and parse the sensor readings file.

    Args:
        sensor_path: Path to a JSON document with numeric temperature and humidity

    Returns:
        Parsed SensorReadings

    Raises:
        SensorReadError: file missing, unreadable, not JSON or missing fields
    """
    try:
        with open(sensor_path, 'r') as f:
            data = json.load(f)
    except (IOError, OSError) as e:
        raise SensorReadError(f"Could not open sensor file: {e}", sensor_path=sensor_path) from e
    except json.JSONDecodeError as e:
        raise SensorReadError(f"Could not parse sensor file: {e}", sensor_path=sensor_path) from e

    if not isinstance(data, dict):
        raise SensorReadError("Sensor file must contain a JSON object", sensor_path=sensor_path)

    return SensorReadings(
        temperature=_numeric(data, 'temperature', sensor_path),
        humidity=_numeric(data, 'humidity', sensor_path),
    )


class SensorIngestService:
    """Fixed-interval sensor file poller feeding AppState."""

    def __init__(self, app_state: 'AppState', sensor_path: str, interval_secs: float):
        self.app_state = app_state
        self.sensor_path = sensor_path
        self.interval_secs = interval_secs
        self.logger: logging.Logger = get_logger(__name__)
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        self._thread = threading.Thread(target=self._loop, name="SensorIngest", daemon=True)
        self._thread.start()
        self.logger.info(f"Sensor ingest started ({self.sensor_path} every {self.interval_secs}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> bool:
        """
        Perform a single ingest cycle.

        Returns:
            True if readings were merged, False if the read failed
        """
        try:
            readings = read_sensor_file(self.sensor_path)
        except SensorReadError as e:
            log_warning(self.logger, f"Sensor read failed: {e.message}",
                        context={'sensor_path': self.sensor_path}, component='sensor')
            return False

        self.app_state.update_readings(readings)
        self.logger.debug(
            f"Sensor readings updated: {readings.temperature}C {readings.humidity}%RH"
        )
        return True

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                self.logger.error(f"Sensor ingest step failed: {e}", exc_info=True)
            if wait_for_stop(self._stop_event, self.interval_secs):
                break
