"""SYSTRAN translator implementation."""

import asyncio
import logging
from typing import List, Optional

import aiohttp

from ..core.exceptions import ProviderRequestError, ProviderTransientError
from .base import BaseTranslator, error_for_status

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = 'https://api-translate.systran.net/translation/text/translate'


class SystranTranslator(BaseTranslator):
    """Translator using the SYSTRAN Translate REST API."""

    def __init__(self, config):
        """Initialize the SYSTRAN translator.

        Recognised ``config.options``:
            - endpoint: Translation endpoint URL
        """
        super().__init__(config)
        self.api_url = self.config.options.get('endpoint', DEFAULT_ENDPOINT)
        self.timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        self.session = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create an aiohttp client session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={
                    'Authorization': f"Key {self.config.api_key}",
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
            'input': texts,
            'source': source_language,
            'target': target_language,
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

        outputs = result.get('outputs') if isinstance(result, dict) else None
        if not isinstance(outputs, list):
            raise ProviderRequestError(self.name, f"unexpected response format: {result}")

        translations = []
        for position, item in enumerate(outputs):
            output = item.get('output') if isinstance(item, dict) else None
            if not isinstance(output, str) or item.get('error'):
                error = item.get('error', 'no output') if isinstance(item, dict) else item
                raise ProviderRequestError(self.name, f"item {position} failed: {error}")
            translations.append(output)
        return translations

    async def close(self):
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
            self.session = None
