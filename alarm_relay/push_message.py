"""
Push Message - data model for pushes to the mobile apps.

A PushMessage is built fresh for every queue event and for every ping reply,
then handed over to the sender and never touched again.
"""
import time
from typing import Dict, Mapping, Optional

from .config import (
    DEFAULT_PRIORITY,
    DEFAULT_TIME_TO_LIVE,
    EVENT_FIELDS,
    NOTIFICATION_BADGE,
    NOTIFICATION_SOUND,
    NOTIFICATION_TITLE_PREFIX,
    STATUS_PLACEHOLDER,
)


class PushMessage:
    """
    A push for the mobile apps, in the shape the push gateway expects.

    Attributes:
        priority: Always 'high' so alarm events are not throttled
        time_to_live: Seconds the gateway keeps trying to deliver (0 = now or never)
        data: Payload for the apps, same fields as the queue events
        notification: Notification centre fields (badge, sound, title, body)
    """

    def __init__(self, time_to_live: int = DEFAULT_TIME_TO_LIVE):
        self.priority = DEFAULT_PRIORITY
        self.time_to_live = time_to_live
        self.data: Dict[str, str] = {}
        self.notification: Dict[str, str] = {}

    @classmethod
    def from_event(cls, event: Mapping[str, object]) -> 'PushMessage':
        """
        Package a validated queue event into a PushMessage.

        Args:
            event: Parsed queue event carrying raw, code, type, message and timestamp

        Returns:
            PushMessage with the default TTL and a notification derived from the event
        """
        message = cls()
        for field in EVENT_FIELDS:
            message.data[field] = str(event[field])

        message.notification = {
            'badge': NOTIFICATION_BADGE,
            'sound': NOTIFICATION_SOUND,
            'title': f"{NOTIFICATION_TITLE_PREFIX} {message.data['type']}",
            'body': message.data['message'],
        }
        return message

    @classmethod
    def alarm_status(cls, alarm_state: str, now: Optional[float] = None) -> 'PushMessage':
        """
        Package the current state of the alarm system into a PushMessage.

        Status pushes are data-only and use a TTL of 0: they are delivered
        immediately or dropped, an out of date status is useless to the app.

        Args:
            alarm_state: Current alarm state, sent as the message type
            now: Unix time to stamp the message with (defaults to the current time)
        """
        message = cls(time_to_live=0)
        timestamp = int(time.time() if now is None else now)
        message.data = {
            'raw': STATUS_PLACEHOLDER,
            'code': STATUS_PLACEHOLDER,
            'type': alarm_state,
            'message': STATUS_PLACEHOLDER,
            'timestamp': str(timestamp),
        }
        return message

    @property
    def type(self) -> Optional[str]:
        return self.data.get('type')

    def to_wire(self) -> dict:
        """Return the JSON object sent to the push gateway."""
        return {
            'priority': self.priority,
            'time_to_live': self.time_to_live,
            'data': dict(self.data),
            'notification': dict(self.notification),
        }

    def __repr__(self):
        return (f"PushMessage(type={self.type!r}, priority={self.priority!r}, "
                f"time_to_live={self.time_to_live!r})")
