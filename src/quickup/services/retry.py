"""Bounded retry with a fixed delay.

Every blocking network call uses the same policy: a fixed number of
attempts with a constant pause between them. No exponential backoff,
no jitter.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from ..constants import FETCH_ATTEMPTS, FETCH_BACKOFF_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Fixed-delay retry policy."""

    attempts: int = FETCH_ATTEMPTS
    backoff_seconds: float = FETCH_BACKOFF_SECONDS
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def run(
        self,
        operation: Callable[[], T],
        retry_on: tuple[type[Exception], ...],
        description: str,
    ) -> T:
        """Call operation until it succeeds or attempts run out.

        Args:
            operation: Zero-argument callable to run
            retry_on: Exception types that count as transient
            description: Short label for log messages

        Returns:
            Whatever operation returned

        Raises:
            The last exception raised by operation once attempts are exhausted
        """
        attempts = max(1, self.attempts)
        for attempt in range(1, attempts + 1):
            try:
                return operation()
            except retry_on as e:
                if attempt == attempts:
                    logger.debug("%s failed on final attempt: %s", description, e)
                    raise
                logger.warning(
                    "%s failed, retrying... (%d/%d): %s", description, attempt, attempts, e
                )
                self.sleep(self.backoff_seconds)
        raise AssertionError("unreachable")
