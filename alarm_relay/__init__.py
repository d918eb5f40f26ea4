"""
HowAlarming Relay

Relays alarm events from beanstalk to the mobile apps over FCM, and app
commands back onto beanstalk:
- Alarm, recovery, fault, armed and disarmed events are broadcast
- Status, arm, disarm, fire, medical and police commands are queued
- Pings are answered with the current alarm status

Usage:
    python -m alarm_relay.server
"""

from .config import RelayConfig, load_config
from .dispatch import PushMessageDispatch
from .push_message import PushMessage
from .registry import AlarmState, ClientRegistry

__all__ = [
    'RelayConfig',
    'load_config',
    'PushMessageDispatch',
    'PushMessage',
    'AlarmState',
    'ClientRegistry',
]
