"""Retry engine for the SFTP puller.

This module provides the fixed-delay retry implementation shared by the
transfer components.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

# Called with the 1-based attempt number and the exception it raised
ErrorHook = Callable[[int, Exception], None]


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 2
    delay: float = 10.0

    def __post_init__(self) -> None:
        """Validate retry configuration."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")  # noqa: TRY003
        if self.delay < 0:
            raise ValueError("delay must be non-negative")  # noqa: TRY003

    @property
    def max_attempts(self) -> int:
        """Total number of attempts, the first try included."""
        return self.max_retries + 1


class RetryEngine:
    """Core retry engine that runs a callable until it succeeds or attempts run out."""

    def __init__(
        self,
        config: RetryConfig,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the retry engine with configuration.

        Args:
            config: Retry configuration parameters.
            sleep: Blocking sleep used between attempts.
        """
        self.config = config
        self._sleep = sleep

    def execute_with_retry(
        self,
        func: Callable[..., T],
        *args: object,
        on_error: ErrorHook | None = None,
        **kwargs: object,
    ) -> T:
        """Execute a function with retry logic.

        Args:
            func: The function to execute.
            *args: Positional arguments for the function.
            on_error: Optional hook invoked after every failed attempt.
            **kwargs: Keyword arguments for the function.

        Returns:
            Result of the function execution.

        Raises:
            The last exception encountered if all attempts fail.
        """
        for attempt in range(self.config.max_attempts):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if on_error is not None:
                    on_error(attempt + 1, e)

                if attempt == self.config.max_retries:
                    raise

                self._sleep(self.config.delay)

        raise RuntimeError("Retry execution failed unexpectedly")  # noqa: TRY003


def create_fixed_retry_engine(
    attempts: int,
    delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> RetryEngine:
    """Create a retry engine making `attempts` tries with a fixed `delay` between them."""
    if attempts < 1:
        raise ValueError("attempts must be at least 1")  # noqa: TRY003
    return RetryEngine(RetryConfig(max_retries=attempts - 1, delay=delay), sleep=sleep)
