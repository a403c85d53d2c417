"""
Structured error handling for the web interface.

Provides error codes, categories, and consistent error response formatting.
"""

from enum import Enum
from typing import Dict, Any, Optional, List, Tuple, Type

from smart_display.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigSaveError,
    ContentTypeError,
    DecodeError,
    EncodeError,
    FetchError,
    SensorReadError,
    UnknownUrlError,
)


class ErrorCategory(Enum):
    """Error categories for classification."""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    NETWORK = "network"
    IMAGE = "image"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorCode(Enum):
    """Error codes for specific error types."""
    # Configuration errors
    CONFIG_SAVE_FAILED = "CONFIG_SAVE_FAILED"
    CONFIG_LOAD_FAILED = "CONFIG_LOAD_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    URL_NOT_FOUND = "URL_NOT_FOUND"

    # Network errors
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"

    # Image errors
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    IMAGE_DECODE_FAILED = "IMAGE_DECODE_FAILED"
    IMAGE_ENCODE_FAILED = "IMAGE_ENCODE_FAILED"

    # System errors
    SENSOR_READ_FAILED = "SENSOR_READ_FAILED"
    SYSTEM_ERROR = "SYSTEM_ERROR"

    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Checked in order, so subclasses come before their bases
_EXCEPTION_CODES: List[Tuple[Type[Exception], ErrorCode, int]] = [
    (ConfigSaveError, ErrorCode.CONFIG_SAVE_FAILED, 500),
    (ConfigLoadError, ErrorCode.CONFIG_LOAD_FAILED, 500),
    (ConfigError, ErrorCode.CONFIG_LOAD_FAILED, 500),
    (UnknownUrlError, ErrorCode.URL_NOT_FOUND, 404),
    (ContentTypeError, ErrorCode.UNSUPPORTED_MEDIA_TYPE, 415),
    (DecodeError, ErrorCode.IMAGE_DECODE_FAILED, 422),
    (EncodeError, ErrorCode.IMAGE_ENCODE_FAILED, 500),
    (SensorReadError, ErrorCode.SENSOR_READ_FAILED, 500),
    (ValueError, ErrorCode.VALIDATION_ERROR, 400),
]

_DEFAULT_STATUS: Dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.URL_NOT_FOUND: 404,
    ErrorCode.UNSUPPORTED_MEDIA_TYPE: 415,
    ErrorCode.IMAGE_DECODE_FAILED: 422,
    ErrorCode.NETWORK_ERROR: 502,
    ErrorCode.TIMEOUT: 504,
}


class WebInterfaceError(Exception):
    """
    Structured error for web interface responses.

    Provides consistent error format with error codes, categories,
    messages, and context.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        category: Optional[ErrorCategory] = None,
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        suggested_fixes: Optional[List[str]] = None,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.category = category or self._infer_category(error_code)
        self.details = details
        self.context = context or {}
        self.suggested_fixes = suggested_fixes or self._get_default_suggestions(error_code)
        self.original_error = original_error
        self.status_code = status_code or _DEFAULT_STATUS.get(error_code, 500)

    def _infer_category(self, error_code: ErrorCode) -> ErrorCategory:
        """Infer error category from error code."""
        code_str = error_code.value

        if code_str.startswith("CONFIG_"):
            return ErrorCategory.CONFIGURATION
        elif code_str.startswith("VALIDATION_") or code_str in ("INVALID_INPUT", "URL_NOT_FOUND"):
            return ErrorCategory.VALIDATION
        elif code_str.startswith("NETWORK_") or code_str == "TIMEOUT":
            return ErrorCategory.NETWORK
        elif code_str.startswith("IMAGE_") or code_str == "UNSUPPORTED_MEDIA_TYPE":
            return ErrorCategory.IMAGE
        elif code_str.startswith("SYSTEM_") or code_str.startswith("SENSOR_"):
            return ErrorCategory.SYSTEM
        else:
            return ErrorCategory.UNKNOWN

    def _get_default_suggestions(self, error_code: ErrorCode) -> List[str]:
        """Get default suggested fixes for error code."""
        suggestions_map = {
            ErrorCode.CONFIG_SAVE_FAILED: [
                "Check file permissions on the config directory",
                "Check available disk space",
                "The change is active until restart; retry to persist it"
            ],
            ErrorCode.CONFIG_LOAD_FAILED: [
                "Check config file exists and is readable",
                "Verify config file is valid JSON"
            ],
            ErrorCode.INVALID_INPUT: [
                "Check input format and types",
                "Verify required fields are provided"
            ],
            ErrorCode.URL_NOT_FOUND: [
                "Add the URL to the candidate list first"
            ],
            ErrorCode.NETWORK_ERROR: [
                "Verify the image URL is reachable from the display host",
                "Check the upstream server returns a success status"
            ],
            ErrorCode.TIMEOUT: [
                "Retry the request",
                "Increase SMART_DISPLAY_FETCH_TIMEOUT for slow sources"
            ],
            ErrorCode.UNSUPPORTED_MEDIA_TYPE: [
                "Use a direct link to the image file, not a web page"
            ],
            ErrorCode.IMAGE_DECODE_FAILED: [
                "Verify the URL serves a valid image"
            ],
        }

        return suggestions_map.get(error_code, ["Review error details and try again"])

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON response."""
        result = {
            "status": "error",
            "error_code": self.error_code.value,
            "error_category": self.category.value,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        if self.context:
            result["context"] = self.context

        if self.suggested_fixes:
            result["suggested_fixes"] = self.suggested_fixes

        return result

    @classmethod
    def from_exception(
        cls,
        exception: Exception,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> 'WebInterfaceError':
        """
        Create WebInterfaceError from an exception.

        Args:
            exception: Exception to convert
            error_code: Optional specific error code
            context: Optional additional context
        """
        inferred_code, status_code = cls._infer_error_code(exception)
        if error_code is None:
            error_code = inferred_code
        else:
            status_code = _DEFAULT_STATUS.get(error_code, 500)

        error_context = dict(getattr(exception, 'context', None) or {})
        error_context.update(context or {})
        error_context['exception_type'] = type(exception).__name__

        message = getattr(exception, 'message', None) or str(exception)

        return cls(
            error_code=error_code,
            message=message,
            context=error_context,
            original_error=exception,
            status_code=status_code
        )

    @classmethod
    def _infer_error_code(cls, exception: Exception) -> Tuple[ErrorCode, int]:
        """Infer error code and HTTP status from exception type."""
        if isinstance(exception, FetchError):
            if exception.timed_out:
                return ErrorCode.TIMEOUT, 504
            return ErrorCode.NETWORK_ERROR, 502

        for exc_type, code, status in _EXCEPTION_CODES:
            if isinstance(exception, exc_type):
                return code, status

        return ErrorCode.UNKNOWN_ERROR, 500
