"""
Bounded retry with exponential backoff for async operations.
"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

import httpx

from .error_handler import NotFoundError, UpstreamError
from .logger import logger


DEFAULT_RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (
    UpstreamError,
    NotFoundError,
    httpx.TransportError,
)


@dataclass
class RetryConfig:
    """Retry policy values."""

    max_retries: int = 2
    initial_delay: float = 0.5
    max_delay: float = 8.0
    backoff_factor: float = 2.0
    retryable_errors: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: DEFAULT_RETRYABLE_ERRORS
    )


class RetryManager:
    """
    Runs an async callable, retrying on a fixed set of exceptions.

    ``max_retries`` counts retries, so a call is attempted at most
    ``max_retries + 1`` times.
    """

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 0.5,
        max_delay: float = 8.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retryable_errors: Tuple[Type[BaseException], ...] = DEFAULT_RETRYABLE_ERRORS
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.retryable_errors = tuple(retryable_errors)

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryManager":
        return cls(
            max_retries=config.max_retries,
            base_delay=config.initial_delay,
            max_delay=config.max_delay,
            exponential_base=config.backoff_factor,
            retryable_errors=config.retryable_errors,
        )

    def _calculate_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)
        if self.jitter:
            delay *= random.uniform(0.8, 1.2)
        return delay

    async def execute(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        exceptions: Optional[Tuple[Type[BaseException], ...]] = None,
        max_retries: Optional[int] = None,
        **kwargs: Any
    ) -> Any:
        """
        Await ``func(*args, **kwargs)`` until it succeeds or attempts run out.

        Args:
            func: Coroutine function to call
            exceptions: Exception types that trigger a retry; defaults to
                the manager's ``retryable_errors``
            max_retries: Per-call override of the manager's retry count

        Returns:
            Whatever ``func`` returns

        Raises:
            The last retryable exception once attempts are exhausted, or any
            non-retryable exception immediately
        """

        retries = self.max_retries if max_retries is None else max_retries
        if exceptions is None:
            exceptions = self.retryable_errors
        attempts = retries + 1

        for attempt in range(attempts):
            try:
                return await func(*args, **kwargs)

            except exceptions as e:
                if attempt + 1 >= attempts:
                    logger.error(f"All {attempts} attempts failed, giving up: {e}")
                    raise

                delay = self._calculate_delay(attempt)
                logger.warning(
                    f"Attempt {attempt + 1} failed: {e}. Retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)


__all__ = [
    "RetryConfig",
    "RetryManager",
    "DEFAULT_RETRYABLE_ERRORS",
]
