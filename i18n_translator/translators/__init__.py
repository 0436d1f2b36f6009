"""Translator implementations for the i18n translator."""

from .base import BaseTranslator, error_for_status
from .deepl_translator import DeepLTranslator
from .gemini_translator import GeminiTranslator
from .google_translator import GoogleTranslator
from .openai_translator import OpenAITranslator
from .systran_translator import SystranTranslator
from .translator_factory import DEFAULT_TIERS, TranslatorFactory

__all__ = [
    'BaseTranslator',
    'error_for_status',
    'SystranTranslator',
    'DeepLTranslator',
    'GoogleTranslator',
    'OpenAITranslator',
    'GeminiTranslator',
    'TranslatorFactory',
    'DEFAULT_TIERS',
]
