"""Retry policy for transient store failures"""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from domain.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Exponential backoff applied only to StoreUnavailable.

    The wrapped callable must be a complete unit (a read, or a whole
    check-then-insert transaction); partial work is never replayed.
    """

    def __init__(self, attempts: int = 3, base_delay: float = 0.05, max_delay: float = 1.0):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.attempts = attempts
        self.base_delay = base_delay
        self.max_delay = max_delay

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "store operation") -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except StoreUnavailable as exc:
                if attempt >= self.attempts:
                    logger.error("%s failed after %d attempts: %s", description, attempt, exc)
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                    description, attempt, self.attempts, delay, exc,
                )
                await asyncio.sleep(delay)
                attempt += 1


NO_RETRY = RetryPolicy(attempts=1)
