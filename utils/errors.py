"""Turns request validation failures into the single-message error bodies the API returns."""
from typing import Any, Dict, Sequence

MISSING_FIELDS_MESSAGE = 'Please provide all required fields'
VALUE_ERROR_PREFIX = 'Value error, '


def _field_name(error: Dict[str, Any]) -> str:
    location = [str(part) for part in error.get('loc', ()) if part not in ('body', 'query', 'path')]
    return '.'.join(location) or 'request'


def validation_message(errors: Sequence[Dict[str, Any]]) -> str:
    """
    Picks a human-readable message for the first failing field.
    Messages raised by our own field rules pass through untouched; pydantic's
    generic messages get the field name prepended.
    """
    if not errors:
        return 'Invalid request'
    error = errors[0]
    error_type = error.get('type', '')
    if error_type == 'missing':
        return MISSING_FIELDS_MESSAGE
    if error_type == 'json_invalid':
        return 'Request body is not valid JSON'
    message = str(error.get('msg', 'Invalid value'))
    if error_type == 'value_error':
        return message[len(VALUE_ERROR_PREFIX):] if message.startswith(VALUE_ERROR_PREFIX) else message
    return f"Invalid {_field_name(error)}: {message}"
