"""
Retry Logic with Exponential Backoff and Jitter

Retries batch commits that fail with transient store errors.
"""

import time
import random
import logging
from typing import Optional, Callable, Any, Tuple, Type
from dataclasses import dataclass

from services.database.store import TransientStoreError

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior"""
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0
    exponential_base: float = 2.0
    jitter: str = "full"  # "full", "equal", "decorrelated", "none"

    # Exceptions that should trigger retry
    retryable_exceptions: Tuple[Type[Exception], ...] = (
        TransientStoreError,
        ConnectionError,
        TimeoutError,
    )

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


def calculate_backoff(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    exponential_base: float = 2.0,
    jitter: str = "full"
) -> float:
    """
    Delay before retry number ``attempt`` (0-based).

    Jitter strategies:
    - "full": uniform between 0 and the exponential delay
    - "equal": half fixed, half random
    - "decorrelated": uniform between base delay and 3x the delay, capped
    - "none": pure exponential
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)

    if jitter == "full":
        return random.uniform(0, delay)
    elif jitter == "equal":
        return delay / 2 + random.uniform(0, delay / 2)
    elif jitter == "decorrelated":
        return min(max_delay, random.uniform(base_delay, delay * 3))
    else:  # "none"
        return delay


class RetryHandler:
    """
    Runs a callable, retrying retryable exceptions with backoff.

    Args:
        config: Retry settings
        sleep: Sleep function (tests pass a no-op)
    """

    def __init__(self, config: Optional[RetryConfig] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config or RetryConfig()
        self.sleep = sleep

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        if attempt >= self.config.max_attempts - 1:
            return False
        return isinstance(exception, self.config.retryable_exceptions)

    def get_delay(self, attempt: int) -> float:
        return calculate_backoff(
            attempt=attempt,
            base_delay=self.config.base_delay,
            max_delay=self.config.max_delay,
            exponential_base=self.config.exponential_base,
            jitter=self.config.jitter
        )

    def execute(
        self,
        func: Callable,
        *args,
        on_retry: Optional[Callable[[int, Exception, float], None]] = None,
        **kwargs
    ) -> Any:
        """
        Call ``func`` until it succeeds or a non-retryable error occurs.

        The last retryable error is re-raised unchanged once attempts run out,
        so callers see the store's own exception type.
        """
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if not self.should_retry(e, attempt):
                    if attempt > 0 and isinstance(e, self.config.retryable_exceptions):
                        logger.error(f"Giving up after {attempt + 1} attempts: {e}")
                    raise

                delay = self.get_delay(attempt)
                logger.warning(
                    f"Attempt {attempt + 1}/{self.config.max_attempts} failed: {e}. "
                    f"Retrying in {delay:.2f}s"
                )
                if on_retry:
                    on_retry(attempt, e, delay)
                self.sleep(delay)
                attempt += 1
