"""
Persistent configuration store.

Loads and saves the frame configuration (rotation duration, candidate URL
set and current selection) as a small JSON document. Saves are atomic:
the document is written to a temp file in the target directory and then
renamed over the real file.
"""

import json
import math
import os
import tempfile
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional, Set, List

from jsonschema import Draft7Validator, ValidationError

from smart_display.exceptions import ConfigLoadError, ConfigSaveError
from smart_display.logging_config import get_logger

DEFAULT_CONFIG_PATH = "smart-display.json"
DEFAULT_DURATION_SECS = 60.0

# Unknown fields are allowed so newer files load on older builds.
CONFIG_FILE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "durationSecs": {"type": "number", "minimum": 0},
        "urls": {"type": "array", "items": {"type": "string"}},
        "url": {"type": ["string", "null"]},
    },
}


@dataclass
class FrameConfig:
    """Durable picture-frame configuration."""

    duration_secs: float = DEFAULT_DURATION_SECS
    urls: Set[str] = field(default_factory=set)
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FrameConfig':
        """
        Create a FrameConfig from the persisted JSON document.

        Missing fields fall back to defaults; an empty ``url`` means no
        current selection.
        """
        url = data.get('url') or None
        return cls(
            duration_secs=float(data.get('durationSecs', DEFAULT_DURATION_SECS)),
            urls=set(data.get('urls', [])),
            url=url,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to the persisted JSON document."""
        return {
            'durationSecs': self.duration_secs,
            'urls': sorted(self.urls),
            'url': self.url or '',
        }

    def copy(self) -> 'FrameConfig':
        return FrameConfig(
            duration_secs=self.duration_secs,
            urls=set(self.urls),
            url=self.url,
        )


def _format_validation_error(error: ValidationError) -> str:
    path = '.'.join(str(p) for p in error.path)
    field_path = f"'{path}'" if path else "root"
    if error.validator == 'type':
        expected = error.validator_value
        actual = type(error.instance).__name__
        return f"Field {field_path}: Expected type {expected}, got {actual}"
    if error.validator == 'minimum':
        return f"Field {field_path}: Value {error.instance} is below minimum {error.validator_value}"
    return f"Field {field_path}: {error.message}"


class ConfigManager:
    """Reads and writes the frame configuration file."""

    def __init__(self, config_path: Optional[str] = None) -> None:
        self.config_path: str = config_path or DEFAULT_CONFIG_PATH
        self.logger: logging.Logger = get_logger(__name__)
        self._validator = Draft7Validator(CONFIG_FILE_SCHEMA)

    def get_config_path(self) -> str:
        return self.config_path

    def validate(self, data: Any) -> List[str]:
        """
        Validate a decoded config document.

        Returns:
            List of error messages (empty when valid)
        """
        errors = sorted(self._validator.iter_errors(data), key=lambda e: list(e.path))
        return [_format_validation_error(e) for e in errors]

    def load(self) -> FrameConfig:
        """
        Load configuration from the JSON file.

        Raises:
            ConfigLoadError: file missing, unreadable, not JSON or wrong shape
        """
        abs_path = os.path.abspath(self.config_path)
        self.logger.debug(f"Attempting to load config from: {abs_path}")
        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigLoadError(
                f"Configuration file not found at {abs_path}",
                config_path=self.config_path
            ) from e
        except json.JSONDecodeError as e:
            raise ConfigLoadError(
                f"Error parsing configuration file {abs_path}",
                config_path=self.config_path,
                context={'error': str(e)}
            ) from e
        except (IOError, OSError) as e:
            raise ConfigLoadError(
                f"Error loading configuration from {abs_path}",
                config_path=self.config_path,
                context={'error': str(e)}
            ) from e

        errors = self.validate(data)
        if errors:
            raise ConfigLoadError(
                f"Invalid configuration in {abs_path}: {'; '.join(errors)}",
                config_path=self.config_path
            )

        config = FrameConfig.from_dict(data)
        # json accepts NaN and Infinity, which the schema lets through
        if not math.isfinite(config.duration_secs):
            raise ConfigLoadError(
                f"Invalid configuration in {abs_path}: durationSecs must be finite",
                config_path=self.config_path,
                field='durationSecs'
            )
        self.logger.info(
            f"Loaded config from {abs_path} ({len(config.urls)} urls, "
            f"duration {config.duration_secs}s)"
        )
        return config

    def load_or_default(self) -> FrameConfig:
        """
        Load configuration, falling back to defaults on any load failure.

        A missing or corrupt file must never prevent the service from starting.
        """
        try:
            return self.load()
        except ConfigLoadError as e:
            self.logger.warning(f"Using default configuration: {e}")
            return FrameConfig()

    def save(self, config: FrameConfig) -> None:
        """
        Atomically overwrite the configuration file with the full config.

        Raises:
            ConfigSaveError: serialization or file system failure
        """
        path = Path(self.config_path)
        try:
            payload = json.dumps(config.to_dict(), indent=4)
        except (TypeError, ValueError) as e:
            raise ConfigSaveError(
                f"Error serializing configuration: {e}",
                config_path=self.config_path
            ) from e

        temp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Temp file in the same directory so the rename stays on one filesystem
            with tempfile.NamedTemporaryFile(
                mode='w',
                dir=path.parent,
                prefix=f".{path.name}.tmp.",
                suffix='.json',
                delete=False
            ) as temp_file:
                temp_path = Path(temp_file.name)
                temp_file.write(payload)
            temp_path.replace(path)
        except (IOError, OSError) as e:
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    self.logger.warning(f"Could not remove temp config file {temp_path}")
            raise ConfigSaveError(
                f"Error writing configuration to file {os.path.abspath(self.config_path)}",
                config_path=self.config_path,
                context={'error': str(e)}
            ) from e

        self.logger.debug(f"Configuration saved atomically to {os.path.abspath(self.config_path)}")
