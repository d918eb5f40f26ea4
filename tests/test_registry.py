"""
tests/test_registry.py

Unit tests for alarm_relay/registry.py.
"""

import threading

from alarm_relay.push_message import PushMessage
from alarm_relay.registry import AlarmState, ClientRegistry
from tests.fixtures import TOKEN_1, TOKEN_2, build_event


def test_registering_twice_keeps_one_instance() -> None:
    registry = ClientRegistry()

    assert registry.add(TOKEN_1) is True
    assert registry.add(TOKEN_1) is False

    assert len(registry) == 1
    assert registry.snapshot() == [TOKEN_1]


def test_snapshot_keeps_insertion_order() -> None:
    registry = ClientRegistry()
    for token in (TOKEN_2, TOKEN_1, "device-token-3"):
        registry.add(token)

    assert registry.snapshot() == [TOKEN_2, TOKEN_1, "device-token-3"]
    assert TOKEN_1 in registry
    assert "unknown-token" not in registry


def test_snapshot_is_not_affected_by_later_registrations() -> None:
    """A client registering mid-broadcast does not disturb the iteration."""
    registry = ClientRegistry()
    registry.add(TOKEN_1)

    snapshot = registry.snapshot()
    registry.add(TOKEN_2)

    assert snapshot == [TOKEN_1]
    assert len(registry) == 2


def test_concurrent_registration_is_deduplicated() -> None:
    registry = ClientRegistry()
    tokens = [f"token-{i % 50}" for i in range(500)]
    threads = [
        threading.Thread(target=lambda chunk=tokens[i::5]: [registry.add(t) for t in chunk])
        for i in range(5)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry) == 50


def test_alarm_state_tracks_armed_and_disarmed_only() -> None:
    state = AlarmState()
    assert state.current == "unknown"

    state.observe(PushMessage.from_event(build_event("armed")))
    assert state.current == "armed"

    state.observe(PushMessage.from_event(build_event("alarm")))
    assert state.current == "armed"

    state.observe(PushMessage.from_event(build_event("disarmed")))
    assert state.current == "disarmed"
