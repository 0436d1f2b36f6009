"""Factory for creating translator instances."""

from typing import Dict, Type

from ..core.models import ProviderConfig, ProviderTier
from .base import BaseTranslator
from .deepl_translator import DeepLTranslator
from .gemini_translator import GeminiTranslator
from .google_translator import GoogleTranslator
from .openai_translator import OpenAITranslator
from .systran_translator import SystranTranslator

# Quality ranking of the built-in providers
DEFAULT_TIERS: Dict[str, ProviderTier] = {
    'systran': ProviderTier.PRIMARY,
    'deepl': ProviderTier.SECONDARY,
    'google': ProviderTier.TERTIARY,
    'openai': ProviderTier.FALLBACK,
    'gemini': ProviderTier.FALLBACK,
}


class TranslatorFactory:
    """Factory class for creating translator instances."""

    # Map of translator types to their corresponding classes
    _translators: Dict[str, Type[BaseTranslator]] = {
        'systran': SystranTranslator,
        'deepl': DeepLTranslator,
        'google': GoogleTranslator,
        'openai': OpenAITranslator,
        'gemini': GeminiTranslator,
    }

    @classmethod
    def register_translator(
        cls,
        translator_type: str,
        translator_class: Type[BaseTranslator]
    ) -> None:
        """Register a new translator type.

        Args:
            translator_type: Unique identifier for the translator type
            translator_class: Translator class to register
        """
        if not issubclass(translator_class, BaseTranslator):
            raise TypeError(
                f"Translator class must be a subclass of BaseTranslator, "
                f"got {translator_class.__name__}"
            )
        cls._translators[translator_type] = translator_class

    @classmethod
    def get_available_translators(cls) -> Dict[str, Type[BaseTranslator]]:
        """Get a dictionary of available translator types and their classes."""
        return dict(cls._translators)

    @classmethod
    def create_translator(cls, config: ProviderConfig) -> BaseTranslator:
        """Create a translator for a provider configuration.

        The translator type is ``config.options['type']`` when given, so one
        provider class can be configured twice under different names;
        otherwise it is the provider name.

        Raises:
            ValueError: If the translator type is not registered
        """
        translator_type = config.options.get('type', config.name)
        translator_class = cls._translators.get(translator_type)
        if not translator_class:
            raise ValueError(
                f"Unknown translator type: {translator_type}. "
                f"Available types: {', '.join(cls._translators.keys())}"
            )

        return translator_class(config)
