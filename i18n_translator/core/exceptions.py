"""Custom exceptions for the i18n translator."""

from typing import TYPE_CHECKING, FrozenSet, List, Optional

if TYPE_CHECKING:
    from .models import AttemptRecord


class TranslationError(Exception):
    """Base exception for translation errors."""
    pass


class ConfigurationError(TranslationError):
    """Exception raised for configuration errors."""
    pass


class NoProvidersConfiguredError(ConfigurationError):
    """Raised when a router is built without any translation provider."""

    def __init__(self, message: str = "No translation providers configured"):
        super().__init__(message)


class ValidationError(TranslationError):
    """Exception raised for malformed translation requests."""
    pass


class ProviderError(TranslationError):
    """A failure reported by (or on behalf of) a single provider.

    Provider errors never reach callers of the router directly; they are
    turned into fallback decisions and recorded as attempts.

    Attributes:
        provider: Name of the provider that failed
        attempts: Number of requests made to the provider before giving up
    """

    retryable = False

    def __init__(self, provider: str, message: str, attempts: int = 1):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.attempts = attempts


class ProviderAuthError(ProviderError):
    """Authentication or authorization failure. Never retried."""
    pass


class ProviderRequestError(ProviderError):
    """The provider rejected the request or returned an unusable response."""
    pass


class ProviderTransientError(ProviderError):
    """Timeouts, throttling and server-side errors. Retried with backoff."""

    retryable = True


class RateLimitWaitExceeded(ProviderError):
    """Waiting for a rate-limit token took longer than the acquire timeout."""

    def __init__(self, provider: str, timeout: float):
        super().__init__(
            provider,
            f"rate limit wait exceeded {timeout:.2f}s",
            attempts=0,
        )
        self.timeout = timeout


class PlaceholderMismatchError(ProviderError):
    """The translation lost, added or renamed placeholder tokens."""

    def __init__(
        self,
        provider: str,
        missing: FrozenSet[str],
        added: FrozenSet[str],
        attempts: int = 1,
    ):
        details = []
        if missing:
            details.append(f"missing {sorted(missing)}")
        if added:
            details.append(f"unexpected {sorted(added)}")
        super().__init__(
            provider,
            f"placeholder mismatch ({', '.join(details)})",
            attempts=attempts,
        )
        self.missing = missing
        self.added = added


class AllProvidersFailedError(TranslationError):
    """Every provider in the fallback chain failed for one text.

    Attributes:
        source: The source text that could not be translated
        attempts: One record per provider that was tried
    """

    def __init__(
        self,
        source: str,
        attempts: List["AttemptRecord"],
        message: Optional[str] = None,
    ):
        if message is None:
            tried = ", ".join(
                f"{record.provider}={record.outcome.value}" for record in attempts
            ) or "none"
            message = f"All {len(attempts)} provider(s) failed ({tried})"
        super().__init__(message)
        self.source = source
        self.attempts = attempts


class TranslationTimeoutError(AllProvidersFailedError):
    """The overall deadline expired before the text was translated."""

    def __init__(self, source: str, attempts: List["AttemptRecord"], timeout: float):
        super().__init__(
            source,
            attempts,
            message=f"Translation timed out after {timeout:.2f}s "
                    f"({len(attempts)} provider attempt(s) recorded)",
        )
        self.timeout = timeout
