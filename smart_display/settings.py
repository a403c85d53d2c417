"""
Service Settings

Deployment-level settings for the SmartDisplay service (where the frame
config lives, where to listen, how images are fetched and transcoded).
These come from environment variables and CLI flags, and are separate from
the persisted frame configuration that clients edit at runtime.
"""

import math
import os
from dataclasses import dataclass, asdict
from typing import Dict, Any, Mapping, Optional, Tuple

import pytz

from smart_display.exceptions import ConfigError
from smart_display.image_utils import OUTPUT_FORMATS
from smart_display.config_manager import DEFAULT_CONFIG_PATH


ENV_PREFIX = 'SMART_DISPLAY_'

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


@dataclass
class ServiceSettings:
    """Settings for one SmartDisplay process."""

    config_path: str = DEFAULT_CONFIG_PATH
    host: str = '0.0.0.0'
    port: int = 3000

    # Sensor ingest runs only when both are set
    sensor_path: Optional[str] = None
    sensor_interval_secs: Optional[float] = None

    # Image cache
    fetch_timeout_secs: float = 10.0
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    output_format: str = 'JPEG'
    output_quality: int = 85
    cache_lock_mode: str = 'global'

    timezone: Optional[str] = None
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ServiceSettings':
        """
        Create ServiceSettings from SMART_DISPLAY_* environment variables.

        Raises:
            ConfigError: a variable has an unparseable value
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            if value is None or value.strip() == '':
                return None
            return value.strip()

        defaults = cls()
        settings = cls(
            config_path=get('CONFIG') or defaults.config_path,
            host=get('HOST') or defaults.host,
            port=_parse(int, get('PORT'), 'port', defaults.port),
            sensor_path=get('SENSOR_PATH'),
            sensor_interval_secs=_parse(float, get('SENSOR_INTERVAL'), 'sensor_interval_secs', None),
            fetch_timeout_secs=_parse(float, get('FETCH_TIMEOUT'), 'fetch_timeout_secs',
                                      defaults.fetch_timeout_secs),
            image_width=_parse(int, get('IMAGE_WIDTH'), 'image_width', None),
            image_height=_parse(int, get('IMAGE_HEIGHT'), 'image_height', None),
            output_format=(get('OUTPUT_FORMAT') or defaults.output_format).upper(),
            output_quality=_parse(int, get('OUTPUT_QUALITY'), 'output_quality', defaults.output_quality),
            cache_lock_mode=(get('CACHE_LOCK_MODE') or defaults.cache_lock_mode).lower(),
            timezone=get('TIMEZONE'),
            debug=(get('DEBUG') or '').lower() in _TRUE_VALUES,
        )
        settings.validate()
        return settings

    def with_overrides(self, **overrides: Any) -> 'ServiceSettings':
        """Return a copy with non-None overrides applied (used for CLI flags)."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        settings = ServiceSettings(**data)
        settings.validate()
        return settings

    def validate(self) -> None:
        """
        Check values are usable.

        Raises:
            ConfigError: with ``field`` set to the offending setting
        """
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port out of range: {self.port}", field='port')
        if not math.isfinite(self.fetch_timeout_secs) or self.fetch_timeout_secs <= 0:
            raise ConfigError("Fetch timeout must be a positive finite number", field='fetch_timeout_secs')
        if (self.image_width is None) != (self.image_height is None):
            raise ConfigError("Image width and height must be set together", field='image_width')
        if self.image_width is not None and (self.image_width <= 0 or self.image_height <= 0):
            raise ConfigError("Image dimensions must be positive", field='image_width')
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"Unsupported output format '{self.output_format}' "
                f"(expected one of {', '.join(OUTPUT_FORMATS)})",
                field='output_format'
            )
        if not 1 <= self.output_quality <= 100:
            raise ConfigError("Output quality must be between 1 and 100", field='output_quality')
        if self.cache_lock_mode not in ('global', 'per_key'):
            raise ConfigError(f"Unsupported cache lock mode '{self.cache_lock_mode}'",
                              field='cache_lock_mode')
        if self.sensor_interval_secs is not None and (
                not math.isfinite(self.sensor_interval_secs) or self.sensor_interval_secs <= 0):
            raise ConfigError("Sensor interval must be a positive finite number", field='sensor_interval_secs')
        if self.timezone:
            try:
                pytz.timezone(self.timezone)
            except pytz.UnknownTimeZoneError as e:
                raise ConfigError(f"Unknown timezone '{self.timezone}'", field='timezone') from e

    @property
    def sensor_enabled(self) -> bool:
        return bool(self.sensor_path) and self.sensor_interval_secs is not None

    @property
    def target_size(self) -> Optional[Tuple[int, int]]:
        if self.image_width is None or self.image_height is None:
            return None
        return self.image_width, self.image_height

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _parse(convert, raw: Optional[str], field: str, default):
    if raw is None:
        return default
    try:
        return convert(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid value '{raw}' for {field}", field=field) from e
