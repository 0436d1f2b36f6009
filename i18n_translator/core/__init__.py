"""Core functionality for the i18n translator."""

from .cache import CacheBackend, CacheStats, InMemoryCache, JsonFileCache, fingerprint
from .exceptions import (
    AllProvidersFailedError,
    ConfigurationError,
    NoProvidersConfiguredError,
    ProviderError,
    TranslationError,
    TranslationTimeoutError,
    ValidationError,
)
from .models import (
    AttemptOutcome,
    AttemptRecord,
    ProviderConfig,
    ProviderTier,
    RateLimit,
    TranslationEntry,
    TranslationRequest,
    TranslationResult,
)
from .router import DEFAULT_LANGUAGE_PREFERENCES, FallbackRouter

__all__ = [
    'FallbackRouter',
    'DEFAULT_LANGUAGE_PREFERENCES',
    'ProviderConfig',
    'ProviderTier',
    'RateLimit',
    'TranslationRequest',
    'TranslationResult',
    'TranslationEntry',
    'AttemptOutcome',
    'AttemptRecord',
    'CacheBackend',
    'CacheStats',
    'InMemoryCache',
    'JsonFileCache',
    'fingerprint',
    'TranslationError',
    'ConfigurationError',
    'NoProvidersConfiguredError',
    'ValidationError',
    'ProviderError',
    'AllProvidersFailedError',
    'TranslationTimeoutError',
]
