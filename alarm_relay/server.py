"""
HowAlarming Relay - relays alarm events to the mobile apps and app commands to the alarm

Events read from the beanstalk events tube are pushed to every registered app
via FCM. Commands published by the apps over MQTT are posted to the beanstalk
commands tube.

Usage:
    python -m alarm_relay.server

Environment variables: see alarm_relay.config
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from . import fcm_service
from .beanstalk_client import BeanstalkListener, BeanstalkProducer
from .config import RelayConfig, load_config
from .dispatch import PushMessageDispatch
from .gateway import GatewayServer
from .log import configure_logging, get_logger
from .mqtt_handler import create_client
from .registry import AlarmState, ClientRegistry

logger = get_logger(__name__)

SERVICE_NAME = 'HowAlarming Relay'


class Relay:
    """All relay components, wired together for one process."""

    def __init__(self, config: RelayConfig):
        self.config = config
        self.registry = ClientRegistry()
        self.state = AlarmState()

        self.dispatch = PushMessageDispatch()
        self.broadcaster = fcm_service.BroadcastSender(self.registry)
        self.dispatch.add_observer(self.state.observe)
        self.dispatch.add_observer(self.broadcaster)

        self.producer = BeanstalkProducer(config)
        self.listener = BeanstalkListener(config, self.dispatch)
        self.executor = ThreadPoolExecutor(
            max_workers=config.gateway_workers, thread_name_prefix='Gateway')
        self.gateway = GatewayServer(self.registry, self.producer, self.state,
                                     executor=self.executor)

    def start_workers(self) -> None:
        logger.info("Listening to beanstalk queue on %s:%s",
                    self.config.beanstalk_host, self.config.beanstalk_port)
        self.dispatch.start()
        self.listener.start()


def start(config: Optional[RelayConfig] = None) -> None:
    """Start the relay and block until interrupted."""
    config = config or load_config()
    logger.info("Starting %s...", SERVICE_NAME)

    fcm_service.init_firebase(config)
    relay = Relay(config)
    relay.start_workers()

    client = create_client(config, relay.gateway)
    logger.info("Connecting to MQTT broker: %s:%s", config.mqtt_broker, config.mqtt_port)

    try:
        client.connect(config.mqtt_broker, config.mqtt_port, keepalive=60)
        logger.info("Starting MQTT loop (Ctrl+C to stop)...")
        client.loop_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        client.disconnect()
    except Exception:
        logger.exception("An error occurred while the relay was running.")
        raise


def main() -> None:
    configure_logging()
    start()


if __name__ == '__main__':
    main()
