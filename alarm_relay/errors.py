"""Exceptions raised inside the relay."""


class RelayError(Exception):
    """Base class for relay errors."""


class MalformedEventError(RelayError):
    """A queue message that cannot be turned into a push message."""

    def __init__(self, raw, reason: str):
        super().__init__(f"{reason}: {raw!r}")
        self.raw = raw
        self.reason = reason


class QueueUnavailableError(RelayError):
    """The queue stayed unreachable for every attempt of a bounded retry policy."""
