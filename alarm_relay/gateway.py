"""
Gateway Server - handles messages sent by the mobile apps.

Apps register themselves by including their registration token in every
message, and can send one of a few simple commands common to all alarm
models. Commands go onto the beanstalk commands tube, except for ping which
is answered directly with the current alarm status.

Registration and ping replies run on the calling thread. Posting to the
queue can block for as long as beanstalk is down, so posts run on the
executor when one is given.
"""
from concurrent.futures import Executor
from typing import Callable, Optional

from .beanstalk_client import BeanstalkProducer
from .config import PING_COMMAND, QUEUE_COMMANDS
from .fcm_service import reply, send_to_device
from .log import get_logger
from .payload_parser import get_string
from .push_message import PushMessage
from .registry import AlarmState, ClientRegistry

logger = get_logger(__name__)


class GatewayServer:
    """
    Registers clients and actions their commands.

    Args:
        registry: Where new clients are registered
        producer: Receives the commands forwarded to the alarm
        state: Source of the alarm state reported to pinging apps
        send: Function sending a wire message to one token
        executor: Runs queue posts off the calling thread, None to post inline
    """

    def __init__(self, registry: ClientRegistry, producer: BeanstalkProducer,
                 state: Optional[AlarmState] = None,
                 send: Callable[[str, dict], object] = send_to_device,
                 executor: Optional[Executor] = None):
        self.registry = registry
        self.producer = producer
        self.state = state or AlarmState()
        self._send = send
        self._executor = executor

    def on_message(self, sender: str, payload) -> None:
        """
        Handle one message from an app.

        Never raises: failures are logged so the transport keeps delivering
        messages from other devices.

        Args:
            sender: Where the message came from (e.g. the MQTT topic)
            payload: Decoded JSON payload
        """
        if not isinstance(payload, dict):
            logger.info("Unexpected message received from %s, ignoring.", sender)
            return

        registration_token = get_string(payload, 'registration_token')
        command = get_string(payload, 'command')

        if registration_token is not None:
            logger.info("Message sender: %s", registration_token)
            self.registry.add(registration_token)

        if command is None:
            logger.info("Unexpected message received from %s without a command, ignoring.", sender)
            return

        logger.info('Command "%s" received from device.', command)
        try:
            self.handle_command(command, registration_token)
        except Exception:
            logger.exception('Failed to action command "%s" from %s', command, registration_token or sender)

    def handle_command(self, command: str, registration_token: Optional[str] = None) -> None:
        if command in QUEUE_COMMANDS:
            if self._executor is None:
                self.forward(command)
            else:
                self._executor.submit(self.forward, command)
        elif command == PING_COMMAND:
            self.reply_status(registration_token)
        else:
            logger.warning("Command %s is not a supported simple command type, unable to action message",
                           command)

    def reply_status(self, registration_token: Optional[str]) -> bool:
        """
        Send the current alarm status back to a pinging app.

        The app pings every time it starts, which also re-registers it after
        a relay restart.
        """
        if registration_token is None:
            logger.warning("Received ping without a registration token, unable to reply")
            return False

        logger.info("Received ping from device, sending back status.")
        message = PushMessage.alarm_status(self.state.current)
        return reply(registration_token, message, send=self._send)

    def forward(self, command: str) -> None:
        """Post a command to the commands tube, logging any failure."""
        try:
            self.producer.post(command)
        except Exception:
            logger.exception('Failed to post command "%s" to beanstalk', command)
