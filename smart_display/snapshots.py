"""
Read-only projections of the shared state served to display and config clients.

Nothing in here mutates state; callers pass in copies taken under the
AppState lock together with the wall-clock time.
"""

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Dict, Any, Optional, List

import pytz

from smart_display.config_manager import FrameConfig
from smart_display.sensor_service import SensorReadings


@dataclass(frozen=True)
class PollingSnapshot:
    """Live state polled repeatedly by the display client."""

    date_time: datetime
    image_url: Optional[str]
    temperature: Optional[float] = None
    humidity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        extra = None
        if self.temperature is not None and self.humidity is not None:
            extra = {'temperature': self.temperature, 'humidity': self.humidity}
        return {
            'dateTime': self.date_time.isoformat(),
            'imageUrl': self.image_url,
            'extra': extra,
        }


@dataclass(frozen=True)
class ImageIndexSnapshot:
    """Full configuration listing for the config UI."""

    duration_secs: float
    image_urls: List[str] = field(default_factory=list)
    image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'durationSecs': self.duration_secs,
            'imageUrls': list(self.image_urls),
            'imageUrl': self.image_url,
        }


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """
    Resolve an IANA timezone name.

    Returns None for an empty name, meaning host local time.

    Raises:
        pytz.UnknownTimeZoneError: unknown name
    """
    if not name:
        return None
    return pytz.timezone(name)


def current_time(tz: Optional[tzinfo] = None) -> datetime:
    """Timezone-aware wall-clock time, local to the host when tz is None."""
    if tz is None:
        return datetime.now().astimezone()
    return datetime.now(tz)


def build_polling_snapshot(
    config: FrameConfig,
    readings: SensorReadings,
    now: datetime
) -> PollingSnapshot:
    return PollingSnapshot(
        date_time=now,
        image_url=config.url,
        temperature=readings.temperature,
        humidity=readings.humidity,
    )


def build_index_snapshot(config: FrameConfig) -> ImageIndexSnapshot:
    # Sorted so the config UI gets a stable order from an unordered set
    return ImageIndexSnapshot(
        duration_secs=config.duration_secs,
        image_urls=sorted(config.urls),
        image_url=config.url,
    )
