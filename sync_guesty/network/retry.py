"""Backoff policy for rate-limited Guesty requests."""

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class RetryPolicy:
    """
    Bounded exponential backoff.

    The nth retry waits min(base_delay * 2**n, max_delay) seconds; once more
    than max_retries retries have been used the caller gives up.

    Attributes:
        max_retries: Retries allowed for one request before aborting
        base_delay: Delay unit in seconds
        max_delay: Upper bound for a single delay in seconds
        sleep: Sleep function, swappable in tests

    Example:
        >>> policy = RetryPolicy()
        >>> [policy.delay_for(n) for n in (1, 2, 3, 4, 5)]
        [2.0, 4.0, 8.0, 15.0, 15.0]
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 15.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def delay_for(self, retry_count: int) -> float:
        return min(self.base_delay * (2**retry_count), self.max_delay)

    def exhausted(self, retry_count: int) -> bool:
        return retry_count > self.max_retries
