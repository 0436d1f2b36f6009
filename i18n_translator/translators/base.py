"""Base translator interface for the i18n translator."""

import json
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.exceptions import (
    ProviderAuthError,
    ProviderError,
    ProviderRequestError,
    ProviderTransientError,
)
from ..core.models import ProviderConfig, ProviderTier

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
AUTH_STATUS_CODES = frozenset({401, 403})


def error_for_status(provider: str, status: Optional[int], message: str) -> ProviderError:
    """Map an HTTP status code to the provider error taxonomy.

    A missing status means the request never got an answer (network error,
    dropped connection) and is treated as transient.
    """
    if status in AUTH_STATUS_CODES:
        return ProviderAuthError(provider, f"HTTP {status}: {message}")
    if status is None:
        return ProviderTransientError(provider, message)
    if status in RETRYABLE_STATUS_CODES or status >= 500:
        return ProviderTransientError(provider, f"HTTP {status}: {message}")
    return ProviderRequestError(provider, f"HTTP {status}: {message}")


def mask_key(api_key: Optional[str]) -> str:
    if not api_key:
        return "<none>"
    return f"{api_key[:4]}...{api_key[-4:]}" if len(api_key) > 8 else "..."


def build_batch_prompt(
    texts: List[str],
    source_language: str,
    target_language: str,
    context: Optional[str] = None,
) -> str:
    """Prompt asking an LLM for a JSON list of translations, one per input."""
    lines = [
        f"Translate the following UI strings from {source_language} to {target_language}.",
        "CRITICAL REQUIREMENTS:",
        "1. Return ONLY a JSON object of the form {\"translations\": [...]} with exactly "
        f"{len(texts)} strings, in the same order as the input.",
        "2. PRESERVE ALL PLACEHOLDERS EXACTLY: {{count}}, %{name}, {value} and similar tokens "
        "must appear unchanged in the translation.",
        "3. Do NOT translate placeholder names and do not add new placeholders.",
        "4. Translate only the surrounding text.",
    ]
    if context:
        lines.append(f"Context: {context}")
    lines.append("")
    lines.append(json.dumps(texts, ensure_ascii=False, indent=2))
    return "\n".join(lines)


def parse_batch_response(provider: str, content: str, expected: int) -> List[str]:
    """Parse an LLM reply produced for :func:`build_batch_prompt`."""
    try:
        data = json.loads(content)
    except ValueError as e:
        # Malformed JSON from a model is usually a one-off
        raise ProviderTransientError(provider, f"invalid JSON in response: {e}") from e

    if isinstance(data, dict):
        data = data.get('translations')
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ProviderTransientError(provider, "response is not a list of strings")
    if len(data) != expected:
        raise ProviderTransientError(
            provider, f"expected {expected} translations, got {len(data)}"
        )
    return data


class BaseTranslator(ABC):
    """Abstract base class for all provider clients.

    A translator knows how to send one batch to one provider. Retries,
    rate limiting, caching and fallback are the router's job; implementations
    only translate SDK and HTTP failures into provider errors.
    """

    def __init__(self, config: ProviderConfig):
        """Initialize the translator with the given configuration.

        Args:
            config: Provider configuration (credentials, limits, tier)
        """
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def tier(self) -> ProviderTier:
        return self.config.tier

    def is_available(self) -> bool:
        """Whether the provider has the credentials it needs."""
        return bool(self.config.api_key)

    @abstractmethod
    async def _translate_batch(
        self,
        texts: List[str],
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
    ) -> List[str]:
        """Translate a batch of text segments.

        Raises:
            ProviderError: Or a subclass describing the failure
        """
        pass

    async def translate_batch(
        self,
        texts: List[str],
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
    ) -> List[str]:
        """Translate a batch, checking the provider answered once per input.

        Args:
            texts: Texts to translate, at most ``config.batch_size_limit``
            source_language: Source language code (e.g., 'en')
            target_language: Target language code (e.g., 'de')
            context: Optional hint passed to providers that support it

        Returns:
            Translations aligned with ``texts``
        """
        if not texts:
            return []
        if not self.is_available():
            raise ProviderAuthError(self.name, "API key not configured")

        translations = await self._translate_batch(
            texts,
            source_language=source_language,
            target_language=target_language,
            context=context,
        )
        if len(translations) != len(texts):
            raise ProviderRequestError(
                self.name,
                f"returned {len(translations)} translations for {len(texts)} texts",
            )
        return list(translations)

    async def translate_text(
        self,
        text: str,
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
    ) -> str:
        """Translate a single text string."""
        results = await self.translate_batch(
            [text],
            source_language=source_language,
            target_language=target_language,
            context=context,
        )
        return results[0]

    async def close(self):
        """Close any resources used by the translator."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, tier={int(self.tier)})"
