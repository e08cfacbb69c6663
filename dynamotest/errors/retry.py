"""Retry policy with capped exponential backoff.

Used to wait for a freshly started emulator to accept connections. The
policy blocks the calling thread between attempts and has no
cancellation hook: the attempt budget is the only bound.

Example:
    >>> from dynamotest.errors.retry import RetryPolicy, RetryConfig
    >>>
    >>> policy = RetryPolicy(RetryConfig(max_attempts=10, base_delay=0.5, max_delay=5.0))
    >>> policy.execute(lambda: dynamodb.list_tables(Limit=1))
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from dynamotest.errors.base import RetryExhaustedError, SandboxFault

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts, including the first one.
        base_delay: Delay before the first retry (seconds).
        max_delay: Cap applied to every computed delay (seconds).
        exponential_base: Growth factor between consecutive delays.
        retryable_exceptions: Exception types that trigger another attempt.
    """

    max_attempts: int = 10
    base_delay: float = 0.5
    max_delay: float = 5.0
    exponential_base: float = 2.0
    retryable_exceptions: tuple[type[BaseException], ...] = (Exception,)


class RetryPolicy:
    """Retry an operation with exponential backoff."""

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or RetryConfig()
        self._sleep = sleep

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for the given attempt number (0-indexed)."""
        delay = self.config.base_delay * (self.config.exponential_base**attempt)
        return min(delay, self.config.max_delay)

    def should_retry(self, exception: BaseException, attempt: int) -> bool:
        """Determine if the operation should be retried."""
        if attempt >= self.config.max_attempts - 1:
            return False

        # Faults describe a broken environment; retrying cannot help.
        if isinstance(exception, SandboxFault):
            return False

        return isinstance(exception, self.config.retryable_exceptions)

    def execute(self, operation: Callable[[], T]) -> T:
        """Execute an operation with retry logic.

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable error.
        """
        last_error: BaseException | None = None

        for attempt in range(self.config.max_attempts):
            try:
                return operation()
            except Exception as e:
                last_error = e

                if not isinstance(e, self.config.retryable_exceptions) or isinstance(
                    e, SandboxFault
                ):
                    raise

                if not self.should_retry(e, attempt):
                    break

                delay = self.calculate_delay(attempt)
                logger.warning(
                    f"Retry {attempt + 1}/{self.config.max_attempts} "
                    f"after {delay:.2f}s due to: {e}"
                )
                self._sleep(delay)

        raise RetryExhaustedError(
            message=f"All {self.config.max_attempts} retry attempts exhausted",
            attempts=self.config.max_attempts,
            last_error=last_error,
        )
