"""OpenAI chat-completions translator implementation."""

import asyncio
import logging
from typing import List, Optional

import aiohttp

from ..core.exceptions import ProviderRequestError, ProviderTransientError
from .base import (
    BaseTranslator,
    build_batch_prompt,
    error_for_status,
    parse_batch_response,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = 'https://api.openai.com/v1/chat/completions'
DEFAULT_MODEL = 'gpt-4o-mini'

SYSTEM_PROMPT = (
    "You are a professional translator specializing in UI/UX text. "
    "Return only valid JSON without any markdown formatting."
)


class OpenAITranslator(BaseTranslator):
    """Translator using an OpenAI-compatible chat-completions endpoint.

    The whole batch goes into a single prompt and the model answers with a
    JSON object holding the translations in input order.
    """

    def __init__(self, config):
        super().__init__(config)
        self.api_url = self.config.options.get('endpoint', DEFAULT_ENDPOINT)
        self.model_name = self.config.options.get('model', DEFAULT_MODEL)
        self.temperature = float(self.config.options.get('temperature', 0.3))
        self.timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        self.session = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create an aiohttp client session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={
                    'Authorization': f"Bearer {self.config.api_key}",
                    'Content-Type': 'application/json',
                }
            )
        return self.session

    async def _translate_batch(
        self,
        texts: List[str],
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
    ) -> List[str]:
        session = await self._get_session()
        payload = {
            'model': self.model_name,
            'temperature': self.temperature,
            'response_format': {'type': 'json_object'},
            'messages': [
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {
                    'role': 'user',
                    'content': build_batch_prompt(texts, source_language, target_language, context),
                },
            ],
        }

        try:
            async with session.post(self.api_url, json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise error_for_status(self.name, response.status, error_text)
                result = await response.json()
        except asyncio.TimeoutError as e:
            raise ProviderTransientError(self.name, "request timed out") from e
        except aiohttp.ClientError as e:
            raise ProviderTransientError(self.name, f"request failed: {e}") from e

        try:
            content = result['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderRequestError(self.name, f"unexpected response format: {result}") from e

        usage = result.get('usage') or {}
        if usage:
            logger.debug(
                f"OpenAI token usage: {usage.get('prompt_tokens')} (prompt) + "
                f"{usage.get('completion_tokens')} (completion)"
            )

        return parse_batch_response(self.name, content, len(texts))

    async def close(self):
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
            self.session = None
