"""
Push Message Dispatch - hands push messages from the queue thread to the senders.

The listener thread calls send(); the dispatch thread runs run() and delivers
every message to the observers that were registered when it was sent.
"""
import queue
import threading
from typing import Callable, List

from .log import get_logger
from .push_message import PushMessage

logger = get_logger(__name__)

Observer = Callable[[PushMessage], object]


class PushMessageDispatch:
    """
    Channel between the beanstalk listener and the push senders.

    Args:
        maxsize: Maximum number of undelivered messages, 0 for unbounded.
            When full, send() blocks until the dispatch thread catches up.
    """

    def __init__(self, maxsize: int = 0):
        self._queue = queue.Queue(maxsize=maxsize)
        self._observers: List[Observer] = []
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    def add_observer(self, observer: Observer) -> None:
        with self._lock:
            self._observers.append(observer)

    def send(self, message: PushMessage) -> None:
        """Queue a message for every observer registered right now."""
        with self._lock:
            observers = tuple(self._observers)
        if not observers:
            logger.debug("No observers registered, dropping %r", message)
            return
        self._queue.put((message, observers))

    def pending(self) -> int:
        return self._queue.qsize()

    def dispatch_pending(self, timeout: float = None) -> bool:
        """
        Deliver the next queued message.

        Args:
            timeout: Seconds to wait for a message, None to wait forever

        Returns:
            False if no message arrived within the timeout
        """
        try:
            message, observers = self._queue.get(timeout=timeout)
        except queue.Empty:
            return False

        try:
            for observer in observers:
                try:
                    observer(message)
                except Exception:
                    logger.exception("Observer %r failed to handle %r", observer, message)
        finally:
            self._queue.task_done()
        return True

    def run(self, poll_interval: float = 1.0) -> None:
        """Deliver messages until stop() is called."""
        logger.info("Push dispatch running")
        while not self._stopped.is_set():
            self.dispatch_pending(timeout=poll_interval)

    def stop(self) -> None:
        self._stopped.set()

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name='Push Dispatch', daemon=True)
        thread.start()
        return thread
