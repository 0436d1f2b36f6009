"""DeepL translator implementation."""

import asyncio
import logging
from typing import List, Optional

import deepl

from ..core.exceptions import (
    ProviderAuthError,
    ProviderRequestError,
    ProviderTransientError,
)
from .base import BaseTranslator, error_for_status, mask_key

logger = logging.getLogger(__name__)

# DeepL rejects the bare codes for languages with regional variants
_TARGET_OVERRIDES = {
    'EN': 'EN-US',
    'PT': 'PT-BR',
}


def deepl_source_code(language: str) -> str:
    """DeepL source languages are bare two-letter codes."""
    return language.replace('_', '-').split('-')[0].upper()


def deepl_target_code(language: str) -> str:
    code = language.replace('_', '-').upper()
    if '-' in code and code.split('-')[0] in _TARGET_OVERRIDES:
        return code
    code = code.split('-')[0]
    return _TARGET_OVERRIDES.get(code, code)


class DeepLTranslator(BaseTranslator):
    """Translator using the DeepL API."""

    def __init__(self, config):
        """Initialize the DeepL translator."""
        super().__init__(config)
        self.server_url = self.config.options.get('server_url')
        self.translator = None

    def _get_client(self) -> deepl.Translator:
        if self.translator is None:
            logger.info(f"Creating DeepL client with key {mask_key(self.config.api_key)}")
            self.translator = deepl.Translator(
                self.config.api_key,
                server_url=self.server_url,
            )
        return self.translator

    async def _translate_batch(
        self,
        texts: List[str],
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
    ) -> List[str]:
        """Translate a batch of texts using DeepL."""
        translator = self._get_client()
        kwargs = {}
        if context:
            kwargs['context'] = context

        try:
            results = await asyncio.to_thread(
                translator.translate_text,
                texts,
                source_lang=deepl_source_code(source_language),
                target_lang=deepl_target_code(target_language),
                **kwargs
            )
        except deepl.AuthorizationException as e:
            raise ProviderAuthError(self.name, str(e)) from e
        except deepl.QuotaExceededException as e:
            raise ProviderRequestError(self.name, f"quota exceeded: {e}") from e
        except deepl.TooManyRequestsException as e:
            raise ProviderTransientError(self.name, f"too many requests: {e}") from e
        except deepl.ConnectionException as e:
            raise ProviderTransientError(self.name, f"connection failed: {e}") from e
        except deepl.DeepLException as e:
            status = getattr(e, 'http_status_code', None)
            raise error_for_status(self.name, status, str(e)) from e

        if not isinstance(results, list):
            results = [results]
        return [r.text for r in results]
