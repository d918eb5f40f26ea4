"""
Configuration for the alarm relay.

IMPORTANT: You must provide the Firebase Admin SDK credentials file.
Download it from Firebase Console > Project Settings > Service Accounts > Generate new private key
and point GCM_API_KEY at it (or save it as 'firebase-admin-key.json' in this directory).

The environment is read once, by load_config(), and the resulting RelayConfig
is passed to every component.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Default path to Firebase Admin SDK credentials
DEFAULT_CREDENTIALS_PATH = os.path.join(
    os.path.dirname(__file__),
    'firebase-admin-key.json'
)

# Queue event types that are pushed to the registered clients
ACCEPTED_EVENT_TYPES = ('alarm', 'recovery', 'fault', 'armed', 'disarmed')

# Fields every accepted queue event must carry
EVENT_FIELDS = ('raw', 'code', 'type', 'message', 'timestamp')

# Simple commands forwarded to the commands tube as-is
QUEUE_COMMANDS = ('status', 'arm', 'disarm', 'fire', 'medical', 'police')

# Sent by the app on every start, answered directly with the alarm status
PING_COMMAND = 'ping'

# Event types that change the alarm state reported in ping replies
STATE_EVENT_TYPES = ('armed', 'disarmed')

# Notification centre fields for event pushes
NOTIFICATION_TITLE_PREFIX = 'HowAlarming Event'
NOTIFICATION_BADGE = '0'
NOTIFICATION_SOUND = 'default'

# Placeholder values for synthesized status messages
STATUS_PLACEHOLDER = 'HOWALARMING'

# Push options
DEFAULT_PRIORITY = 'high'
DEFAULT_TIME_TO_LIVE = 3600

# Beanstalk job options for posted commands
COMMAND_JOB_PRIORITY = 0
COMMAND_JOB_DELAY = 0
COMMAND_JOB_TTR = 300


def _env_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


@dataclass(frozen=True)
class RelayConfig:
    """Settings for one relay process."""

    api_key: str = DEFAULT_CREDENTIALS_PATH
    sender_id: Optional[str] = None

    # Beanstalk queue
    beanstalk_host: str = '127.0.0.1'
    beanstalk_port: int = 11300
    events_tube: str = 'alert_gcm'
    commands_tube: str = 'commands'

    # MQTT broker the apps publish their commands to
    # Defaults to MQTT over TLS on port 8883
    mqtt_broker: str = 'localhost'
    mqtt_port: int = 8883
    mqtt_username: Optional[str] = None
    mqtt_password: Optional[str] = None
    mqtt_use_tls: bool = True
    mqtt_client_id: str = 'howalarming-relay'
    mqtt_commands_topic: str = 'howalarming/commands'

    # Timings (seconds)
    retry_delay: float = 30.0
    reserve_timeout: int = 60

    gateway_workers: int = 4

    @property
    def beanstalk_address(self):
        return (self.beanstalk_host, self.beanstalk_port)


def load_config(environ: Optional[Mapping[str, str]] = None) -> RelayConfig:
    """
    Build the relay configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        RelayConfig with every unset variable at its default

    Raises:
        ValueError: if a numeric variable cannot be parsed
    """
    env = os.environ if environ is None else environ

    return RelayConfig(
        api_key=env.get('GCM_API_KEY', DEFAULT_CREDENTIALS_PATH),
        sender_id=env.get('GCM_SENDER_ID', None),
        beanstalk_host=env.get('BEANSTALK_HOST', '127.0.0.1'),
        beanstalk_port=int(env.get('BEANSTALK_PORT', 11300)),
        events_tube=env.get('BEANSTALK_TUBES_EVENTS', 'alert_gcm'),
        commands_tube=env.get('BEANSTALK_TUBES_COMMANDS', 'commands'),
        mqtt_broker=env.get('MQTT_BROKER', 'localhost'),
        mqtt_port=int(env.get('MQTT_PORT', 8883)),
        mqtt_username=env.get('MQTT_USERNAME', None),
        mqtt_password=env.get('MQTT_PASSWORD', None),
        mqtt_use_tls=_env_bool(env.get('MQTT_USE_TLS', 'true')),
        mqtt_client_id=env.get('MQTT_CLIENT_ID', 'howalarming-relay'),
        mqtt_commands_topic=env.get('MQTT_COMMANDS_TOPIC', 'howalarming/commands'),
        retry_delay=float(env.get('RELAY_RETRY_DELAY', 30)),
        reserve_timeout=int(env.get('RELAY_RESERVE_TIMEOUT', 60)),
        gateway_workers=int(env.get('RELAY_GATEWAY_WORKERS', 4)),
    )
