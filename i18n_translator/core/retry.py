"""Exponential backoff for provider requests."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from .exceptions import ProviderError, ProviderTransientError
from .models import ProviderConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Retries transient provider failures with exponential backoff.

    ``max_retries`` counts retries, not attempts: the default of 3 allows up
    to 4 requests, sleeping 1s, 2s and 4s in between. Only
    ``ProviderTransientError`` is retried; anything else is re-raised after
    the attempt that produced it, without sleeping.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_backoff: float = 1.0,
        multiplier: float = 2.0,
        max_backoff: float = 30.0,
        jitter: float = 0.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        self.max_retries = max_retries
        self.base_backoff = base_backoff
        self.multiplier = multiplier
        self.max_backoff = max_backoff
        self.jitter = jitter
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            base_backoff=config.base_backoff,
            multiplier=config.backoff_multiplier,
            max_backoff=config.max_backoff,
            jitter=config.jitter,
            sleep=sleep,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff(self, retry_number: int) -> float:
        """Delay before the given retry (1-based), without jitter."""
        delay = self.base_backoff * self.multiplier ** (retry_number - 1)
        return min(delay, self.max_backoff)

    def _retrying(self) -> AsyncRetrying:
        wait = wait_exponential(
            multiplier=self.base_backoff,
            exp_base=self.multiplier,
            max=self.max_backoff,
        )
        if self.jitter > 0:
            wait = wait + wait_random(0, self.jitter)
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait,
            retry=retry_if_exception_type(ProviderTransientError),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def run(self, operation: Callable[[], Awaitable[T]]) -> Tuple[T, int]:
        """Run ``operation`` until it succeeds or the policy gives up.

        Args:
            operation: Zero-argument coroutine function making one request

        Returns:
            The operation's result and the number of attempts it took

        Raises:
            ProviderError: The last failure, with ``attempts`` set to the
                number of requests made
        """
        attempt_number = 0
        try:
            async for attempt in self._retrying():
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    result = await operation()
        except ProviderError as e:
            e.attempts = attempt_number
            raise
        return result, attempt_number
