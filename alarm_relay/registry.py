"""
Client Registry - push tokens of the apps we broadcast to.

Clients are kept for the life of the process only. The apps ping on every
start, so the registry fills up again after a restart. There is no removal
path: tokens of uninstalled apps stay until the process restarts.
"""
import threading
from typing import List

from .config import STATE_EVENT_TYPES
from .log import get_logger
from .push_message import PushMessage

logger = get_logger(__name__)

UNKNOWN_STATE = 'unknown'


class ClientRegistry:
    """Insertion-ordered, deduplicated set of registration tokens."""

    def __init__(self):
        self._lock = threading.Lock()
        # dict keeps insertion order
        self._tokens = {}

    def add(self, token: str) -> bool:
        """
        Register a client.

        Returns:
            True if the token was new, False if it was already registered
        """
        with self._lock:
            if token in self._tokens:
                return False
            self._tokens[token] = None
        logger.info("Registered new client %s", token)
        return True

    def snapshot(self) -> List[str]:
        """Copy of the registered tokens, safe to iterate while clients register."""
        with self._lock:
            return list(self._tokens)

    def __contains__(self, token):
        with self._lock:
            return token in self._tokens

    def __len__(self):
        with self._lock:
            return len(self._tokens)


class AlarmState:
    """Last armed/disarmed state seen on the events tube, reported to pinging apps."""

    def __init__(self, initial: str = UNKNOWN_STATE):
        self._lock = threading.Lock()
        self._state = initial

    @property
    def current(self) -> str:
        with self._lock:
            return self._state

    def observe(self, message: PushMessage) -> None:
        """Dispatch observer: track state changes from broadcast events."""
        if message.type not in STATE_EVENT_TYPES:
            return
        with self._lock:
            self._state = message.type
        logger.info("Alarm state is now %s", message.type)
