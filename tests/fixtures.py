"""
tests/fixtures.py

Shared test data and helpers for building queue events, jobs and configs.
"""

import json
from unittest.mock import MagicMock

from alarm_relay.config import RelayConfig
from alarm_relay.retry import RetryPolicy


def build_event(event_type: str = "alarm", **overrides) -> dict:
    """Build a queue event with every field an accepted event needs."""
    event = {
        "type": event_type,
        "raw": "5654 00 0001",
        "code": "5654",
        "message": f"Zone 1 {event_type}",
        "timestamp": "1476000000",
    }
    event.update(overrides)
    return event


def event_body(event_type: str = "alarm", **overrides) -> bytes:
    """Build a queue job body as the alarm would put it on the events tube."""
    return json.dumps(build_event(event_type, **overrides)).encode("utf-8")


def build_config(**overrides) -> RelayConfig:
    """RelayConfig with test-friendly timings."""
    values = {"retry_delay": 30.0, "reserve_timeout": 60, "mqtt_use_tls": False}
    values.update(overrides)
    return RelayConfig(**values)


def no_wait_retry(max_attempts=None) -> RetryPolicy:
    """RetryPolicy with a mocked sleep, inspectable through `.sleep_mock`."""
    sleep = MagicMock()
    policy = RetryPolicy(delay=30.0, max_attempts=max_attempts, sleep=sleep)
    policy.sleep_mock = sleep
    return policy


class FakeJob:
    """Stand-in for greenstalk.Job."""

    def __init__(self, job_id: int, body: bytes):
        self.id = job_id
        self.body = body


# ── Test clients ────────────────────────────────────────────

TOKEN_1: str = "device-token-1"
TOKEN_2: str = "device-token-2"
