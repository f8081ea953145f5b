# -*- coding: utf-8 -*-
"""
Retry policy for page fetches, entity merges and relationship fetches.

Each retrying component gets its own RetryPolicy instead of looping inline.
The default policy retries forever with a fixed delay and treats every
exception the same way; max_attempts, backoff and non_retryable narrow that.

Usage:
    policy = RetryPolicy(delay=5.0)
    page = policy.call(lambda: client.get_json(url), description=f"Loading page {url}")

Author: Formation Graph maintainers
Created: 2025-12-22
Modified: 2026-10-19
"""

# Standard library
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

# Local
from formation_graph.utils.errors import RetryExhaustedError
from formation_graph.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """
    Retry-after-delay around a single unit of work.

    Attributes:
        delay: Seconds to wait after the first failure
        max_attempts: Give up after this many attempts (None = never)
        backoff: Multiplier applied to the delay after each failure (1.0 = fixed)
        max_delay: Upper bound for the delay when backoff > 1
        non_retryable: Exception types re-raised immediately
        sleep: Sleep function, swappable in tests
    """

    def __init__(
        self,
        delay: float = 5.0,
        max_attempts: Optional[int] = None,
        backoff: float = 1.0,
        max_delay: Optional[float] = None,
        non_retryable: Tuple[Type[BaseException], ...] = (),
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if backoff < 1.0:
            raise ValueError("backoff must be >= 1.0")

        self.delay = delay
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.max_delay = max_delay
        self.non_retryable = tuple(non_retryable)
        self.sleep = sleep

        # Statistics
        self.total_failures = 0

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        wait = self.delay * (self.backoff ** (attempt - 1))
        if self.max_delay is not None:
            wait = min(wait, self.max_delay)
        return wait

    def call(self, fn: Callable[[], T], description: str = "Operation") -> T:
        """
        Run fn until it returns.

        Args:
            fn: Zero-argument callable doing one unit of work
            description: Used in log lines and in RetryExhaustedError

        Returns:
            Whatever fn returns on its first successful attempt

        Raises:
            RetryExhaustedError: max_attempts reached (last error chained)
            RetryExhaustedError raised by fn, unchanged (nested policies)
            Any exception listed in non_retryable, unchanged
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return fn()
            except RetryExhaustedError:
                # An inner policy already gave up on this unit
                raise
            except self.non_retryable:
                raise
            except Exception as e:
                self.total_failures += 1
                if self.max_attempts is not None and attempt >= self.max_attempts:
                    logger.error(f"{description} failed, giving up after {attempt} attempts: {e!r}")
                    raise RetryExhaustedError(description, attempt) from e

                wait = self.delay_for(attempt)
                logger.warning(f"{description} failed, retrying in {wait:g}s (attempt {attempt}): {e!r}")
                self.sleep(wait)

    def with_non_retryable(self, *types: Type[BaseException]) -> "RetryPolicy":
        """Copy of this policy that also re-raises the given types immediately."""
        return RetryPolicy(
            delay=self.delay,
            max_attempts=self.max_attempts,
            backoff=self.backoff,
            max_delay=self.max_delay,
            non_retryable=self.non_retryable + tuple(types),
            sleep=self.sleep,
        )
