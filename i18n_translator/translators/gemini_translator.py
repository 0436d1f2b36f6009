"""Google Gemini translator implementation."""

import logging
from typing import List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..core.exceptions import ProviderAuthError, ProviderRequestError
from .base import (
    BaseTranslator,
    build_batch_prompt,
    error_for_status,
    mask_key,
    parse_batch_response,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.0-flash'

# genai.configure sets one API key for the whole process
_configured_key: Optional[str] = None


class GeminiTranslator(BaseTranslator):
    """Translator using the Google Gemini API.

    The google-generativeai SDK keeps its API key in module state, so every
    Gemini provider in a process must share one key. A provider configured
    with a different key fails with :class:`ProviderAuthError` and the router
    moves on to the next provider.
    """

    def __init__(self, config):
        """Initialize the Gemini translator."""
        super().__init__(config)
        self.model_name = self.config.options.get('model', DEFAULT_MODEL)
        self.temperature = float(self.config.options.get('temperature', 0.3))
        self.model = None

    def _get_model(self) -> genai.GenerativeModel:
        global _configured_key
        if self.model is None:
            if _configured_key is not None and _configured_key != self.config.api_key:
                raise ProviderAuthError(
                    self.name,
                    f"Gemini is already configured with key {mask_key(_configured_key)} in this process",
                )
            genai.configure(api_key=self.config.api_key)
            _configured_key = self.config.api_key
            logger.info(f"Using Gemini model {self.model_name} with key {mask_key(self.config.api_key)}")
            self.model = genai.GenerativeModel(
                self.model_name,
                generation_config=genai.GenerationConfig(
                    temperature=self.temperature,
                    response_mime_type='application/json',
                ),
            )
        return self.model

    async def _translate_batch(
        self,
        texts: List[str],
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
    ) -> List[str]:
        """Translate a batch of texts with a single Gemini request."""
        prompt = build_batch_prompt(texts, source_language, target_language, context)
        try:
            response = await self._get_model().generate_content_async(
                prompt,
                request_options={'timeout': self.config.request_timeout},
            )
        except google_exceptions.GoogleAPICallError as e:
            raise error_for_status(self.name, e.code, e.message) from e

        if hasattr(response, 'usage_metadata') and response.usage_metadata:
            logger.debug(
                f"Gemini token usage: {response.usage_metadata.prompt_token_count} (prompt) + "
                f"{response.usage_metadata.candidates_token_count} (candidates)"
            )

        try:
            content = response.text
        except ValueError as e:
            # Raised when the candidate was blocked and carries no text
            raise ProviderRequestError(self.name, f"empty response: {e}") from e

        return parse_batch_response(self.name, content, len(texts))
