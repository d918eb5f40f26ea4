"""
tests/test_dispatch.py

Unit tests for alarm_relay/dispatch.py.
"""

import logging
from unittest.mock import MagicMock

from alarm_relay.dispatch import PushMessageDispatch
from alarm_relay.push_message import PushMessage
from tests.fixtures import build_event


def test_send_delivers_to_every_observer() -> None:
    dispatch = PushMessageDispatch()
    first, second = MagicMock(), MagicMock()
    dispatch.add_observer(first)
    dispatch.add_observer(second)
    message = PushMessage.from_event(build_event())

    dispatch.send(message)
    delivered = dispatch.dispatch_pending(timeout=0)

    assert delivered is True
    first.assert_called_once_with(message)
    second.assert_called_once_with(message)


def test_observer_added_after_send_does_not_see_message() -> None:
    dispatch = PushMessageDispatch()
    early, late = MagicMock(), MagicMock()
    dispatch.add_observer(early)

    dispatch.send(PushMessage.from_event(build_event()))
    dispatch.add_observer(late)
    dispatch.dispatch_pending(timeout=0)

    early.assert_called_once()
    late.assert_not_called()


def test_send_without_observers_is_dropped() -> None:
    dispatch = PushMessageDispatch()

    dispatch.send(PushMessage.from_event(build_event()))

    assert dispatch.pending() == 0
    assert dispatch.dispatch_pending(timeout=0) is False


def test_failing_observer_does_not_stop_others(caplog) -> None:
    dispatch = PushMessageDispatch()
    broken = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    dispatch.add_observer(broken)
    dispatch.add_observer(healthy)

    with caplog.at_level(logging.ERROR):
        dispatch.send(PushMessage.from_event(build_event()))
        dispatch.dispatch_pending(timeout=0)

    healthy.assert_called_once()
    assert "failed to handle" in caplog.text


def test_messages_are_delivered_in_send_order() -> None:
    dispatch = PushMessageDispatch()
    seen = []
    dispatch.add_observer(lambda message: seen.append(message.type))

    for event_type in ("armed", "alarm", "disarmed"):
        dispatch.send(PushMessage.from_event(build_event(event_type)))
    while dispatch.dispatch_pending(timeout=0):
        pass

    assert seen == ["armed", "alarm", "disarmed"]


def test_run_stops_when_stopped() -> None:
    dispatch = PushMessageDispatch()
    seen = []

    def observer(message):
        seen.append(message)
        dispatch.stop()

    dispatch.add_observer(observer)
    dispatch.send(PushMessage.from_event(build_event()))
    dispatch.run(poll_interval=0.01)

    assert len(seen) == 1
