"""Google Translate implementation."""

import asyncio
import logging
from typing import List, Optional

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import translate_v2 as translate

from ..core.exceptions import ProviderAuthError, ProviderTransientError
from .base import BaseTranslator, error_for_status

logger = logging.getLogger(__name__)


def google_language_code(language: str) -> str:
    """The v2 API uses short codes ('en', 'pt') except for Chinese variants."""
    code = language.replace('_', '-')
    primary = code.split('-')[0].lower()
    if primary == 'zh' and '-' in code:
        return f"zh-{code.split('-')[1].upper()}"
    return primary


class GoogleTranslator(BaseTranslator):
    """Translator using Google Cloud Translation API."""

    def __init__(self, config):
        """Initialize the Google translator."""
        super().__init__(config)
        self.client = None

    def is_available(self) -> bool:
        # Application default credentials work without an API key
        return bool(self.config.api_key) or bool(self.config.options.get('use_default_credentials'))

    def _get_client(self) -> translate.Client:
        if self.client is None:
            if self.config.api_key:
                self.client = translate.Client(client_options={'api_key': self.config.api_key})
            else:
                self.client = translate.Client()
        return self.client

    async def _translate_batch(
        self,
        texts: List[str],
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
    ) -> List[str]:
        """Translate a batch of text strings using Google Translate."""
        try:
            client = self._get_client()
            results = await asyncio.to_thread(
                client.translate,
                texts,
                target_language=google_language_code(target_language),
                source_language=google_language_code(source_language),
                format_='text',
            )
        except auth_exceptions.DefaultCredentialsError as e:
            raise ProviderAuthError(self.name, str(e)) from e
        except google_exceptions.GoogleAPICallError as e:
            raise error_for_status(self.name, e.code, e.message) from e
        except OSError as e:
            # requests' network errors derive from IOError
            raise ProviderTransientError(self.name, f"network error: {e}") from e

        return [result['translatedText'] for result in results]
