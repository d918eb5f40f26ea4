"""
Payload Parser - Decodes queue events and device commands.

Handles the two JSON payloads the relay receives:
- Queue events: {"type": "alarm", "raw": "...", "code": "...", "message": "...", "timestamp": "..."}
- Device commands: {"registration_token": "...", "command": "arm"}

Usage:
    from .payload_parser import parse_event, is_accepted_event

    event = parse_event(b'{"type": "alarm", ...}')
    if is_accepted_event(event):
        ...
"""
import json
from typing import Any, Dict, Optional, Union

from .config import ACCEPTED_EVENT_TYPES, EVENT_FIELDS
from .errors import MalformedEventError


def decode_body(body: Union[bytes, str]) -> str:
    """
    Decode a raw message body as UTF-8 text.

    Raises:
        MalformedEventError: if the bytes are not valid UTF-8
    """
    if isinstance(body, str):
        return body
    try:
        return body.decode('utf-8')
    except UnicodeDecodeError:
        raise MalformedEventError(body, "Message body is not valid UTF-8") from None


def _load_object(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except (ValueError, RecursionError, TypeError):
        # ValueError covers JSONDecodeError and oversized integers
        raise MalformedEventError(text, "Received invalid JSON message") from None

    if not isinstance(data, dict):
        # JSON but not an object (e.g., just a number or string)
        raise MalformedEventError(text, "Message is not a JSON object")
    return data


def parse_event(body: Union[bytes, str]) -> Dict[str, Any]:
    """
    Parse a queue message body into an event object.

    Only the `type` field is required here; the remaining fields are checked
    by is_accepted_event() since unaccepted types never need them.

    Args:
        body: Raw job body from the events tube

    Returns:
        The decoded JSON object

    Raises:
        MalformedEventError: if the body is not UTF-8, not a JSON object or has no type
    """
    text = decode_body(body)
    event = _load_object(text.strip())

    if not isinstance(event.get('type'), str):
        raise MalformedEventError(text, "Message has no event type")
    return event


def is_accepted_event(event: Dict[str, Any]) -> bool:
    """
    Check if an event should be pushed to the mobile apps.

    Args:
        event: Parsed queue event (from parse_event)

    Returns:
        True if the event type is one we broadcast

    Raises:
        MalformedEventError: if an accepted event is missing one of its fields
    """
    if event['type'] not in ACCEPTED_EVENT_TYPES:
        return False

    missing = [field for field in EVENT_FIELDS if event.get(field) is None]
    if missing:
        raise MalformedEventError(event, f"Event is missing fields {', '.join(missing)}")
    return True


def parse_command(raw_payload: Union[bytes, str]) -> Optional[Dict[str, Any]]:
    """
    Parse a device message into a command object.

    Returns None if the payload is not valid UTF-8 JSON.
    """
    try:
        return json.loads(decode_body(raw_payload))
    except (MalformedEventError, ValueError, RecursionError):
        return None


def get_string(payload: Dict[str, Any], field: str) -> Optional[str]:
    """Return a field as a string, or None when absent or empty."""
    value = payload.get(field)
    if value is None or value == '':
        return None
    return str(value)
