"""i18n Translator - Fallback routing of UI strings across translation providers."""

# Version of the package
__version__ = "0.1.0"

# Import core functionality
from .core import (
    FallbackRouter,
    ProviderConfig,
    ProviderTier,
    TranslationRequest,
    TranslationResult,
)
from .translators import TranslatorFactory

__all__ = [
    'FallbackRouter',
    'ProviderConfig',
    'ProviderTier',
    'TranslationRequest',
    'TranslationResult',
    'TranslatorFactory',
    '__version__',
]
