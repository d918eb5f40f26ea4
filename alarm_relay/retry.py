"""
Retry policy for queue operations.

The relay never gives up on the queue: the default policy retries forever
with a fixed delay. A bounded policy is available for tools and tests.
"""
import time
from typing import Callable, Optional


class RetryPolicy:
    """Fixed-delay retry policy.

    Args:
        delay: Seconds to wait between attempts
        max_attempts: Total attempts allowed, None for unbounded
        sleep: Function used to wait, called with the delay in seconds
    """

    def __init__(self, delay: float = 30.0, max_attempts: Optional[int] = None,
                 sleep: Callable[[float], object] = time.sleep):
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.delay = delay
        self.max_attempts = max_attempts
        self._sleep = sleep

    def exhausted(self, attempt: int) -> bool:
        """True once `attempt` failed attempts use up the policy."""
        return self.max_attempts is not None and attempt >= self.max_attempts

    def wait(self) -> None:
        self._sleep(self.delay)

    def __repr__(self):
        return f"RetryPolicy(delay={self.delay!r}, max_attempts={self.max_attempts!r})"
