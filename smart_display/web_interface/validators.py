"""
Input validation for the web interface.

Request bodies are checked against JSON Schemas; image URLs are checked for
an http(s) scheme before they are stored or fetched.
"""

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from jsonschema import Draft7Validator

_IMAGE_URL = {"type": "string", "minLength": 1, "maxLength": 2048}

IMAGE_MODIFY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "imageUrl": {"anyOf": [_IMAGE_URL, {"type": "null"}]},
        "durationSecs": {"anyOf": [{"type": "number", "minimum": 0}, {"type": "null"}]},
    },
}

IMAGE_CREATE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"imageUrl": _IMAGE_URL},
    "required": ["imageUrl"],
}

# Deleting is lenient about the URL shape so bad entries can be cleaned up
IMAGE_DELETE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"imageUrl": {"type": "string"}},
    "required": ["imageUrl"],
}

_validators: Dict[int, Draft7Validator] = {}


def validate_against_schema(data: Any, schema: Dict[str, Any]) -> List[str]:
    """
    Validate a decoded JSON body against a schema.

    Returns:
        List of readable error messages (empty when valid)
    """
    validator = _validators.get(id(schema))
    if validator is None:
        validator = Draft7Validator(schema)
        _validators[id(schema)] = validator

    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        path = '.'.join(str(p) for p in error.path)
        field_path = f"'{path}'" if path else "body"
        if error.validator == 'required':
            errors.append(f"Missing required field: {error.message.split(' ')[0]}")
        else:
            errors.append(f"Field {field_path}: {error.message}")
    return errors


def validate_image_url(url: str) -> Tuple[bool, Optional[str]]:
    """
    Validate an image source URL.

    Only absolute http:// and https:// URLs with a host are accepted.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL must be a non-empty string"

    url_lower = url.lower().strip()

    dangerous_protocols = ['javascript:', 'data:', 'vbscript:', 'file:']
    for protocol in dangerous_protocols:
        if url_lower.startswith(protocol):
            return False, f"Dangerous protocol '{protocol}' not allowed"

    try:
        parsed = urlparse(url.strip())
    except ValueError as e:
        return False, f"Invalid URL format: {str(e)}"

    if parsed.scheme not in ('http', 'https'):
        return False, "Only http:// and https:// protocols are allowed"
    if not parsed.netloc:
        return False, "URL must include a host"
    return True, None
