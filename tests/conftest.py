import asyncio
from typing import Callable, Iterable, List, Mapping, Optional
from unittest.mock import MagicMock

import pytest

from i18n_translator.core.models import ProviderConfig, RateLimit
from i18n_translator.translators.base import BaseTranslator


class FakeTranslator(BaseTranslator):
    """Provider double driven by a script.

    Each call consumes the next script step: an exception instance is raised,
    a list is returned as-is and a callable is applied to the batch. Once
    the script is empty every text is translated as ``"<target>:<text>"``.
    """

    def __init__(
        self,
        name: str,
        tier: int = 4,
        script: Optional[list] = None,
        api_key: Optional[str] = "test-key",
        slow_texts: Iterable[str] = (),
        delay: float = 0.0,
        delays: Optional[Mapping[str, float]] = None,
        translate: Optional[Callable[[str, str], str]] = None,
        **config
    ):
        config.setdefault('rate_limit', RateLimit(requests_per_second=1000, burst=1000))
        super().__init__(ProviderConfig(name=name, tier=tier, api_key=api_key, **config))
        self.script = list(script or [])
        self.slow_texts = set(slow_texts)
        self.delay = delay
        self.delays = dict(delays or {})
        self.translate = translate or (lambda text, target: f"{target}:{text}")
        self.calls: List[List[str]] = []
        self.closed = False

    async def _translate_batch(self, texts, source_language, target_language, context=None):
        self.calls.append(list(texts))
        if self.delay or self.slow_texts.intersection(texts):
            await asyncio.sleep(self.delay or 3600)
        elif self.delays:
            await asyncio.sleep(max(self.delays.get(text, 0.0) for text in texts))
        if self.script:
            step = self.script.pop(0)
            if isinstance(step, BaseException):
                raise step
            if callable(step):
                return step(texts)
            return step
        return [self.translate(text, target_language) for text in texts]

    async def close(self):
        self.closed = True


class FakeResponse:
    """Minimal stand-in for an aiohttp response used as ``async with``."""

    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


def fake_session(response):
    session = MagicMock()
    session.closed = False
    session.post.return_value = response
    return session


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays and returns at once."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def clock():
    return FakeClock()
