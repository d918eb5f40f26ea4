"""
Beanstalk Client - exchanges messages with the alarm over beanstalkd.

Two halves:
- BeanstalkListener long-polls the events tube and hands every accepted
  event to the push dispatch. It runs on its own thread for the life of
  the process and never gives up on the queue connection.
- BeanstalkProducer posts commands from the mobile apps onto the commands
  tube, retrying until the queue takes them.
"""
import threading
from typing import Callable, Optional

import greenstalk

from .config import (
    COMMAND_JOB_DELAY,
    COMMAND_JOB_PRIORITY,
    COMMAND_JOB_TTR,
    RelayConfig,
)
from .dispatch import PushMessageDispatch
from .errors import MalformedEventError, QueueUnavailableError
from .log import get_logger
from .payload_parser import is_accepted_event, parse_event
from .push_message import PushMessage
from .retry import RetryPolicy

logger = get_logger(__name__)

ClientFactory = Callable[[], greenstalk.Client]


class _Connection:
    """Lazily (re)connected greenstalk client."""

    def __init__(self, factory: ClientFactory):
        self._factory = factory
        self._client = None

    def get(self) -> greenstalk.Client:
        if self._client is None:
            self._client = self._factory()
        return self._client

    def drop(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except OSError:
            # Already broken, nothing left to close
            pass


class BeanstalkListener:
    """
    Reads events from the events tube and dispatches them as push messages.

    Args:
        config: Relay configuration (queue address, events tube, timings)
        dispatch: Where accepted events are sent
        retry: Policy applied when the queue is unreachable
        client_factory: Builds a connected client watching the events tube
    """

    def __init__(self, config: RelayConfig, dispatch: PushMessageDispatch,
                 retry: Optional[RetryPolicy] = None,
                 client_factory: Optional[ClientFactory] = None):
        self.tube = config.events_tube
        self.reserve_timeout = config.reserve_timeout
        self._dispatch = dispatch
        self._retry = retry or RetryPolicy(delay=config.retry_delay)
        self._connection = _Connection(client_factory or (lambda: greenstalk.Client(
            config.beanstalk_address, encoding=None, watch=config.events_tube)))
        self._stopped = threading.Event()

    def handle(self, body) -> Optional[PushMessage]:
        """
        Turn one job body into a dispatched push message.

        Returns:
            The dispatched PushMessage, or None when the event was skipped
        """
        try:
            event = parse_event(body)
            if not is_accepted_event(event):
                logger.info("Not transmitting event of type: %s", event['type'])
                return None
        except MalformedEventError as e:
            logger.warning("%s, deleting and skipping %r", e.reason, e.raw)
            return None

        message = PushMessage.from_event(event)
        self._dispatch.send(message)
        return message

    def poll(self):
        """
        Reserve and process a single job.

        The job is deleted whether or not it was dispatched, so malformed or
        unwanted events are never reprocessed.

        Returns:
            The processed job, or None if the reserve timed out

        Raises:
            OSError: if the queue connection failed
        """
        client = self._connection.get()
        try:
            job = client.reserve(timeout=self.reserve_timeout)
        except (greenstalk.TimedOutError, greenstalk.DeadlineSoonError):
            return None

        try:
            self.handle(job.body)
        finally:
            try:
                client.delete(job)
            except greenstalk.NotFoundError:
                logger.warning("Job %s expired before it could be deleted", job.id)
        return job

    def run(self) -> None:
        """Poll the events tube until stop() is called."""
        logger.info("Running beanstalk listener against %s", self.tube)
        while not self._stopped.is_set():
            try:
                self.poll()
            except OSError:
                logger.error("Unable to establish a connection to beanstalk, retrying in %s seconds",
                             self._retry.delay, exc_info=True)
                self._connection.drop()
                self._retry.wait()
            except Exception:
                # A single bad job must not end the listener
                logger.exception("Unexpected error while processing a beanstalk job")

    def stop(self) -> None:
        self._stopped.set()

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name='Beanstalk Queue Reader', daemon=True)
        thread.start()
        return thread


class BeanstalkProducer:
    """
    Posts device commands onto the commands tube.

    Args:
        config: Relay configuration (queue address, commands tube, timings)
        retry: Policy applied when the queue is unreachable, unbounded by default
        client_factory: Builds a connected client using the commands tube
    """

    def __init__(self, config: RelayConfig, retry: Optional[RetryPolicy] = None,
                 client_factory: Optional[ClientFactory] = None):
        self.tube = config.commands_tube
        self._retry = retry or RetryPolicy(delay=config.retry_delay)
        self._connection = _Connection(client_factory or (lambda: greenstalk.Client(
            config.beanstalk_address, encoding=None, use=config.commands_tube)))
        self._lock = threading.Lock()

    def _put(self, body: bytes) -> int:
        with self._lock:
            try:
                return self._connection.get().put(
                    body,
                    priority=COMMAND_JOB_PRIORITY,
                    delay=COMMAND_JOB_DELAY,
                    ttr=COMMAND_JOB_TTR,
                )
            except OSError:
                self._connection.drop()
                raise

    def post(self, message: str) -> int:
        """
        Put a command on the commands tube, blocking until the queue accepts it.

        Args:
            message: Command string, e.g. 'arm'

        Returns:
            The beanstalk job id

        Raises:
            QueueUnavailableError: only with a bounded retry policy, once every attempt failed
        """
        logger.info("Posting message to beanstalk: %s", message)
        body = message.encode('utf-8')

        attempt = 0
        while True:
            attempt += 1
            try:
                return self._put(body)
            except OSError as e:
                if self._retry.exhausted(attempt):
                    raise QueueUnavailableError(
                        f"Gave up posting {message!r} to {self.tube} after {attempt} attempts") from e
                logger.error("Unable to establish a connection to beanstalk, retrying in %s seconds",
                             self._retry.delay, exc_info=True)
                self._retry.wait()
