"""Per-provider token bucket."""

import asyncio
import logging
from typing import Optional

from aiolimiter import AsyncLimiter

from .exceptions import RateLimitWaitExceeded
from .models import RateLimit

logger = logging.getLogger(__name__)


class RateLimiter:
    """Token bucket shared by every request sent to one provider.

    The bucket holds ``burst`` tokens and refills at ``requests_per_second``.
    ``AsyncLimiter`` is a leaky bucket of the same shape: its capacity is
    ``max_rate`` and it drains ``max_rate / time_period`` per second.
    """

    def __init__(
        self,
        requests_per_second: float,
        burst: int = 1,
        acquire_timeout: Optional[float] = 10.0,
        name: str = "provider",
    ):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.name = name
        self.requests_per_second = float(requests_per_second)
        self.burst = int(burst)
        self.acquire_timeout = acquire_timeout
        self._limiter = AsyncLimiter(
            max_rate=self.burst,
            time_period=self.burst / self.requests_per_second,
        )

    @classmethod
    def from_config(cls, rate_limit: RateLimit, name: str = "provider") -> "RateLimiter":
        return cls(
            rate_limit.requests_per_second,
            burst=rate_limit.burst,
            acquire_timeout=rate_limit.acquire_timeout,
            name=name,
        )

    def has_capacity(self) -> bool:
        """Whether a token could be taken right now without waiting."""
        return self._limiter.has_capacity()

    async def acquire(self, timeout: Optional[float] = None) -> None:
        """Take one token, waiting for a refill if the bucket is empty.

        Args:
            timeout: Maximum seconds to wait. Defaults to the limiter's
                acquire timeout, which may itself be None to wait indefinitely.

        Raises:
            RateLimitWaitExceeded: If no token became available in time
        """
        timeout = self.acquire_timeout if timeout is None else timeout
        if timeout is None or self._limiter.has_capacity():
            await self._limiter.acquire()
            return

        try:
            await asyncio.wait_for(self._limiter.acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{self.name}: no rate limit token within {timeout:.2f}s")
            raise RateLimitWaitExceeded(self.name, timeout) from None

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None
