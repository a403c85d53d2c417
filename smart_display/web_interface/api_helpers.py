"""
Standardized API response helpers.

Provides consistent API response formatting across all endpoints.
"""

import time
from typing import Any, Optional, Dict, Tuple
from flask import jsonify, request

from smart_display.web_interface.error_handler import create_error_response, create_success_response
from smart_display.web_interface.errors import ErrorCode
from smart_display.web_interface.validators import validate_against_schema


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    metadata: Optional[Dict] = None
):
    """
    Create a standardized success response.

    Args:
        data: Response data
        message: Optional success message
        metadata: Optional metadata (timing, version, etc.)

    Returns:
        Flask jsonify response
    """
    if metadata is None:
        metadata = {}

    if hasattr(request, 'start_time'):
        metadata['response_time_ms'] = int((time.time() - request.start_time) * 1000)

    return jsonify(create_success_response(data, message, metadata or None))


def error_response(
    error_code: ErrorCode,
    message: str,
    details: Optional[str] = None,
    context: Optional[Dict] = None,
    suggested_fixes: Optional[list] = None,
    status_code: Optional[int] = None
):
    """
    Create a standardized error response.

    Returns:
        Flask jsonify response with status code
    """
    return create_error_response(
        error_code=error_code,
        message=message,
        details=details,
        context=context,
        suggested_fixes=suggested_fixes,
        status_code=status_code
    )


def validate_request_json(schema: Dict[str, Any], data: Optional[Dict] = None) -> Tuple[Optional[Dict], Optional[Any]]:
    """
    Validate the request JSON body against a schema.

    Args:
        schema: JSON Schema the body must satisfy
        data: Optional data dict (if None, reads from request)

    Returns:
        Tuple of (data_dict, error_response) or (data_dict, None) if valid
    """
    if data is None:
        data = request.get_json(silent=True)

    if data is None:
        return None, error_response(
            ErrorCode.INVALID_INPUT,
            "Request body must be valid JSON",
            status_code=400
        )

    errors = validate_against_schema(data, schema)
    if errors:
        return None, error_response(
            ErrorCode.INVALID_INPUT,
            "; ".join(errors),
            context={'errors': errors},
            status_code=400
        )

    return data, None
