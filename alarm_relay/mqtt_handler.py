"""
MQTT Handler - Listens for app commands and hands them to the gateway

The mobile apps publish their command messages as JSON to the commands topic:
    {"registration_token": "...", "command": "arm"}

Messages are handed to the gateway on the network loop thread; the gateway
posts queue commands on its own workers, so a beanstalk outage never holds
up the loop.

Environment variables:
    MQTT_BROKER - MQTT broker hostname (default: localhost)
    MQTT_PORT - MQTT broker port (default: 8883)
    MQTT_USERNAME - MQTT username (optional)
    MQTT_PASSWORD - MQTT password (optional)
    MQTT_COMMANDS_TOPIC - Topic the apps publish commands to (default: howalarming/commands)
"""
import ssl

import paho.mqtt.client as mqtt

from .config import RelayConfig
from .gateway import GatewayServer
from .log import get_logger
from .payload_parser import parse_command

logger = get_logger(__name__)


class MqttHandler:
    """Paho callbacks bound to one gateway."""

    def __init__(self, config: RelayConfig, gateway: GatewayServer):
        self.config = config
        self.gateway = gateway

    def on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback when connected to MQTT broker."""
        if reason_code.is_failure:
            logger.error("Failed to connect to MQTT broker: %s", reason_code)
            return

        logger.info("Connected to MQTT broker: %s:%s", self.config.mqtt_broker, self.config.mqtt_port)
        # Subscribe on every connect so the subscription survives reconnects
        client.subscribe(self.config.mqtt_commands_topic)
        logger.info("Subscribed to: %s", self.config.mqtt_commands_topic)

    def on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback when disconnected from MQTT broker."""
        if reason_code.is_failure:
            logger.warning("Unexpected disconnection (%s). Will attempt to reconnect...", reason_code)
        else:
            logger.info("Disconnected from MQTT broker")

    def on_message(self, client, userdata, msg):
        """Callback when message received from MQTT broker."""
        payload = parse_command(msg.payload)
        if payload is None:
            logger.warning("Received invalid JSON message on %s, skipping %r", msg.topic, msg.payload)
            return

        self.gateway.on_message(msg.topic, payload)


def create_client(config: RelayConfig, gateway: GatewayServer) -> mqtt.Client:
    """Create and configure MQTT client."""
    handler = MqttHandler(config, gateway)
    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=config.mqtt_client_id)

    # Set callbacks
    client.on_connect = handler.on_connect
    client.on_disconnect = handler.on_disconnect
    client.on_message = handler.on_message

    # Set authentication if provided
    if config.mqtt_username and config.mqtt_password:
        client.username_pw_set(config.mqtt_username, config.mqtt_password)

    # Apps and relay share the broker over TLS unless MQTT_USE_TLS is off
    if config.mqtt_use_tls:
        client.tls_set(cert_reqs=ssl.CERT_REQUIRED, tls_version=ssl.PROTOCOL_TLS_CLIENT)
        logger.info("TLS enabled for secure connection")

    return client
