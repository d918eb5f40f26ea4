"""
tests/test_config.py

Unit tests for alarm_relay/config.py and alarm_relay/retry.py.
"""

import pytest

from alarm_relay.config import DEFAULT_CREDENTIALS_PATH, load_config
from alarm_relay.retry import RetryPolicy


def test_defaults_when_environment_is_empty() -> None:
    config = load_config({})

    assert config.api_key == DEFAULT_CREDENTIALS_PATH
    assert config.sender_id is None
    assert config.beanstalk_address == ("127.0.0.1", 11300)
    assert config.events_tube == "alert_gcm"
    assert config.commands_tube == "commands"
    assert config.retry_delay == 30.0
    assert config.reserve_timeout == 60
    assert config.mqtt_use_tls is True


def test_environment_overrides() -> None:
    config = load_config({
        "GCM_API_KEY": "/etc/howalarming/key.json",
        "GCM_SENDER_ID": "1234567890",
        "BEANSTALK_HOST": "queue.local",
        "BEANSTALK_PORT": "11301",
        "BEANSTALK_TUBES_EVENTS": "events",
        "BEANSTALK_TUBES_COMMANDS": "alarm_commands",
        "MQTT_USE_TLS": "no",
        "MQTT_COMMANDS_TOPIC": "home/alarm/commands",
    })

    assert config.api_key == "/etc/howalarming/key.json"
    assert config.sender_id == "1234567890"
    assert config.beanstalk_address == ("queue.local", 11301)
    assert config.events_tube == "events"
    assert config.commands_tube == "alarm_commands"
    assert config.mqtt_use_tls is False
    assert config.mqtt_commands_topic == "home/alarm/commands"


def test_invalid_port_fails_at_startup() -> None:
    with pytest.raises(ValueError):
        load_config({"BEANSTALK_PORT": "not-a-port"})


def test_retry_policy_bounds() -> None:
    unbounded = RetryPolicy()
    bounded = RetryPolicy(max_attempts=3)

    assert unbounded.exhausted(10_000) is False
    assert bounded.exhausted(2) is False
    assert bounded.exhausted(3) is True
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
