import asyncio

import pytest

from i18n_translator.core.exceptions import RateLimitWaitExceeded
from i18n_translator.core.models import RateLimit
from i18n_translator.core.rate_limiter import RateLimiter


class TestRateLimiter:

    def test_burst_is_available_immediately(self):
        async def run():
            limiter = RateLimiter(requests_per_second=1, burst=3, acquire_timeout=0.05)
            for _ in range(3):
                await limiter.acquire()

        asyncio.run(run())

    def test_wait_beyond_timeout_raises(self):
        async def run():
            limiter = RateLimiter(requests_per_second=0.5, burst=1, acquire_timeout=0.02, name="slow")
            await limiter.acquire()
            assert not limiter.has_capacity()
            with pytest.raises(RateLimitWaitExceeded) as excinfo:
                await limiter.acquire()
            return excinfo.value

        error = asyncio.run(run())
        assert error.provider == "slow"
        assert error.attempts == 0
        assert not error.retryable

    def test_waits_for_refill(self):
        async def run():
            limiter = RateLimiter(requests_per_second=50, burst=1, acquire_timeout=1.0)
            await limiter.acquire()
            loop = asyncio.get_running_loop()
            started = loop.time()
            await limiter.acquire()
            return loop.time() - started

        waited = asyncio.run(run())
        assert 0.005 < waited < 0.5

    def test_concurrent_callers_share_the_bucket(self):
        async def run():
            limiter = RateLimiter(requests_per_second=20, burst=2, acquire_timeout=2.0)
            await asyncio.gather(*(limiter.acquire() for _ in range(4)))
            return limiter.has_capacity()

        # 4 tokens out of a bucket of 2 means the last callers had to wait
        assert asyncio.run(run()) is False

    def test_explicit_timeout_overrides_default(self):
        async def run():
            limiter = RateLimiter(requests_per_second=0.1, burst=1, acquire_timeout=None)
            await limiter.acquire()
            with pytest.raises(RateLimitWaitExceeded):
                await limiter.acquire(timeout=0.01)

        asyncio.run(run())

    def test_context_manager_takes_a_token(self):
        async def run():
            limiter = RateLimiter(requests_per_second=0.1, burst=1)
            async with limiter:
                pass
            return limiter.has_capacity()

        assert asyncio.run(run()) is False

    def test_from_config(self):
        limiter = RateLimiter.from_config(
            RateLimit(requests_per_second=100, burst=20, acquire_timeout=3.0),
            name="google",
        )
        assert limiter.name == "google"
        assert limiter.burst == 20
        assert limiter.requests_per_second == 100.0
        assert limiter.acquire_timeout == 3.0

    @pytest.mark.parametrize("rps, burst", [(0, 1), (-1, 1), (10, 0)])
    def test_invalid_settings(self, rps, burst):
        with pytest.raises(ValueError):
            RateLimiter(requests_per_second=rps, burst=burst)
