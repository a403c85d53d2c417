"""
Centralized error handling for web interface.

Provides decorators and helpers for consistent error handling across API endpoints.
"""

import functools
from typing import Callable, Any, Optional
from flask import jsonify

from smart_display.exceptions import SmartDisplayError
from smart_display.web_interface.errors import (
    WebInterfaceError, ErrorCode, ErrorCategory
)
from smart_display.logging_config import get_logger


logger = get_logger(__name__)


def handle_errors(
    default_error_code: Optional[ErrorCode] = None,
    default_category: Optional[ErrorCategory] = None,
    log_error: bool = True
):
    """
    Decorator to handle errors in API endpoints.

    Catches exceptions and converts them to structured error responses.
    Domain errors (SmartDisplayError) keep the status their type maps to;
    anything else becomes a 500.

    Args:
        default_error_code: Error code for unexpected exceptions
        default_category: Default error category
        log_error: Whether to log the error
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except WebInterfaceError as e:
                if log_error:
                    logger.warning(
                        f"Error in {func.__name__}: {e.message}",
                        extra={'context': {'error_code': e.error_code.value, **e.context}}
                    )
                return jsonify(e.to_dict()), e.status_code

            except (SmartDisplayError, ValueError) as e:
                web_error = WebInterfaceError.from_exception(
                    e, context={'endpoint': func.__name__}
                )
                if log_error:
                    logger.warning(
                        f"{type(e).__name__} in {func.__name__}: {e}",
                        extra={'context': {'error_code': web_error.error_code.value}}
                    )
                return jsonify(web_error.to_dict()), web_error.status_code

            except Exception as e:
                web_error = WebInterfaceError.from_exception(
                    e,
                    error_code=default_error_code,
                    context={'endpoint': func.__name__}
                )
                web_error.status_code = 500

                if default_category:
                    web_error.category = default_category

                if log_error:
                    logger.error(
                        f"Unhandled error in {func.__name__}: {e}",
                        exc_info=True,
                        extra={'context': {'error_code': web_error.error_code.value}}
                    )

                return jsonify(web_error.to_dict()), 500

        return wrapper
    return decorator


def create_error_response(
    error_code: ErrorCode,
    message: str,
    details: Optional[str] = None,
    context: Optional[dict] = None,
    suggested_fixes: Optional[list] = None,
    status_code: Optional[int] = None
) -> tuple:
    """
    Create a standardized error response.

    Returns:
        Tuple of (jsonify response, status_code)
    """
    error = WebInterfaceError(
        error_code=error_code,
        message=message,
        details=details,
        context=context or {},
        suggested_fixes=suggested_fixes,
        status_code=status_code
    )

    return jsonify(error.to_dict()), error.status_code


def create_success_response(
    data: Any = None,
    message: Optional[str] = None,
    metadata: Optional[dict] = None
) -> dict:
    """
    Create a standardized success response.

    Returns:
        Dictionary for jsonify
    """
    response = {
        "status": "success"
    }

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    if metadata:
        response["metadata"] = metadata

    return response
