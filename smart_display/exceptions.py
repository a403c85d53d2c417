"""
Custom exception hierarchy for SmartDisplay.

Provides specific exception types for the configuration store, the image
fetch cache and the sensor ingest loop, so callers can tell recoverable
conditions apart from failures that must be surfaced to a client.
"""

from typing import Optional


class SmartDisplayError(Exception):
    """Base exception for all SmartDisplay errors."""

    def __init__(self, message: str, context: dict = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(SmartDisplayError):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str, config_path: str = None, field: str = None, context: dict = None):
        """
        Initialize config error.

        Args:
            message: Error message
            config_path: Optional path to config file
            field: Optional field name that caused the error
            context: Optional context dictionary
        """
        if config_path or field:
            context = context or {}
            if config_path:
                context['config_path'] = config_path
            if field:
                context['field'] = field
        super().__init__(message, context)
        self.config_path = config_path
        self.field = field


class ConfigLoadError(ConfigError):
    """The persisted configuration is missing, unreadable or malformed."""


class ConfigSaveError(ConfigError):
    """
    The configuration could not be written to disk.

    The in-memory mutation that triggered the save has already been applied
    and is not rolled back.
    """


class UnknownUrlError(SmartDisplayError):
    """A current selection was requested for a URL outside the candidate set."""

    def __init__(self, message: str, url: str = None, context: dict = None):
        if url:
            context = context or {}
            context['url'] = url
        super().__init__(message, context)
        self.url = url


class ImageCacheError(SmartDisplayError):
    """Exception raised while fetching or transcoding an image for the cache."""

    def __init__(self, message: str, cache_key: str = None, context: dict = None):
        """
        Initialize image cache error.

        Args:
            message: Error message
            cache_key: Optional source URL that caused the error
            context: Optional context dictionary
        """
        if cache_key:
            context = context or {}
            context['cache_key'] = cache_key
        super().__init__(message, context)
        self.cache_key = cache_key


class FetchError(ImageCacheError):
    """Transport failure or non-success HTTP status."""

    def __init__(self, message: str, cache_key: str = None, status_code: Optional[int] = None,
                 timed_out: bool = False, context: dict = None):
        if status_code is not None:
            context = context or {}
            context['status_code'] = status_code
        super().__init__(message, cache_key=cache_key, context=context)
        self.status_code = status_code
        self.timed_out = timed_out


class ContentTypeError(ImageCacheError):
    """Response did not declare an image/* content type."""

    def __init__(self, message: str, cache_key: str = None, content_type: str = None, context: dict = None):
        context = context or {}
        context['content_type'] = content_type or ''
        super().__init__(message, cache_key=cache_key, context=context)
        self.content_type = content_type


class DecodeError(ImageCacheError):
    """Response body could not be decoded as an image."""


class EncodeError(ImageCacheError):
    """Decoded image could not be re-encoded to the output format."""


class SensorReadError(SmartDisplayError):
    """Exception raised when the sensor readings file cannot be read or parsed."""

    def __init__(self, message: str, sensor_path: str = None, context: dict = None):
        if sensor_path:
            context = context or {}
            context['sensor_path'] = sensor_path
        super().__init__(message, context)
        self.sensor_path = sensor_path
