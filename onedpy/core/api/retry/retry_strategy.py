"""Retry strategies using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from ...logging import get_logger

T = TypeVar('T')

logger = get_logger('onedpy.api.retry')


class RetryStrategy(ABC):
    """Abstract retry strategy."""

    @abstractmethod
    def is_retryable(self, error: BaseException) -> bool:
        """Determines if an error belongs to the retried kinds."""
        pass

    @abstractmethod
    async def wait_async(self, attempt: int):
        """Waits before the next attempt."""
        pass


class FixedDelayStrategy(RetryStrategy):
    """
    Fixed-delay retry strategy.

    Retries only errors of the given kinds, sleeping the same delay
    between attempts (no backoff growth).
    """

    def __init__(
        self,
        delay: float,
        retry_on: Tuple[Type[BaseException], ...]
    ):
        if delay < 0:
            raise ValueError("Retry delay must not be negative")
        self.delay = delay
        self.retry_on = retry_on

    def is_retryable(self, error: BaseException) -> bool:
        return isinstance(error, self.retry_on)

    async def wait_async(self, attempt: int):
        """Waits the fixed delay."""
        if self.delay > 0:
            await asyncio.sleep(self.delay)


@dataclass
class RetryPolicy:
    """
    Reusable retry loop.

    Attributes:
        max_attempts: Total number of attempts (first try included)
        strategy: Decides which errors are retried and how long to wait
        name: Operation name used in log messages
        should_continue: Optional predicate checked before every retry;
            returning False stops retrying and re-raises the last error
    """
    max_attempts: int
    strategy: RetryStrategy
    name: str = 'operation'
    should_continue: Optional[Callable[[], bool]] = field(default=None, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def fixed(
        cls,
        max_attempts: int,
        delay: float,
        retry_on: Tuple[Type[BaseException], ...],
        name: str = 'operation',
        should_continue: Optional[Callable[[], bool]] = None
    ) -> 'RetryPolicy':
        """Create a policy with a fixed delay between attempts."""
        return cls(max_attempts, FixedDelayStrategy(delay, retry_on), name, should_continue)

    def _may_continue(self) -> bool:
        return self.should_continue is None or self.should_continue()

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        on_failure: Optional[Callable[[BaseException, int], None]] = None
    ) -> Tuple[T, int]:
        """
        Run an operation until it succeeds or attempts are exhausted.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            on_failure: Optional hook called with (error, attempt) after
                each retryable failure

        Returns:
            Tuple of (result, attempts used)

        Raises:
            The last retryable error once attempts are exhausted, or any
            non-retryable error immediately.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation(), attempt
            except Exception as e:
                if not self.strategy.is_retryable(e):
                    raise
                if on_failure:
                    on_failure(e, attempt)
                if attempt >= self.max_attempts:
                    logger.debug(f"{self.name}: giving up after {attempt} attempts")
                    raise
                if not self._may_continue():
                    raise
                logger.debug(f"{self.name}: attempt {attempt}/{self.max_attempts} failed: {e}")
                await self.strategy.wait_async(attempt)
                if not self._may_continue():
                    raise
