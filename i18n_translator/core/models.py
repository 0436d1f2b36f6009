"""Data model shared by the router, the providers and the cache."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, TYPE_CHECKING

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .cache import CacheStats
    from .exceptions import AllProvidersFailedError


class ProviderTier(IntEnum):
    """Fixed priority rank of a provider slot (1 is tried first)."""
    PRIMARY = 1
    SECONDARY = 2
    TERTIARY = 3
    FALLBACK = 4


@dataclass(frozen=True)
class RateLimit:
    """Token bucket settings for one provider."""
    requests_per_second: float = 10.0
    burst: int = 10
    acquire_timeout: float = 10.0

    def __post_init__(self):
        if self.requests_per_second <= 0:
            raise ConfigurationError("requests_per_second must be positive")
        if self.burst < 1:
            raise ConfigurationError("burst must be at least 1")
        if self.acquire_timeout < 0:
            raise ConfigurationError("acquire_timeout cannot be negative")


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable configuration of one translation provider."""
    name: str
    tier: ProviderTier = ProviderTier.FALLBACK
    api_key: Optional[str] = field(default=None, repr=False)
    max_retries: int = 3
    request_timeout: float = 30.0
    batch_size_limit: int = 50
    rate_limit: RateLimit = field(default_factory=RateLimit)
    base_backoff: float = 1.0
    max_backoff: float = 30.0
    backoff_multiplier: float = 2.0
    jitter: float = 0.0
    preferred_languages: FrozenSet[str] = frozenset()
    options: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Provider name is required")
        if self.max_retries < 0:
            raise ConfigurationError(f"{self.name}: max_retries cannot be negative")
        if self.batch_size_limit < 1:
            raise ConfigurationError(f"{self.name}: batch_size_limit must be at least 1")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"{self.name}: request_timeout must be positive")
        if self.base_backoff < 0 or self.max_backoff < 0 or self.jitter < 0:
            raise ConfigurationError(f"{self.name}: backoff settings cannot be negative")
        # Accept plain ints and lists from config files
        try:
            object.__setattr__(self, 'tier', ProviderTier(self.tier))
        except ValueError:
            raise ConfigurationError(f"{self.name}: unknown tier {self.tier!r}") from None
        object.__setattr__(
            self,
            'preferred_languages',
            frozenset(lang.lower() for lang in self.preferred_languages),
        )


@dataclass
class TranslationRequest:
    """A batch of source strings to translate into one target language."""
    texts: List[str]
    source_language: str
    target_language: str
    context: Optional[str] = None
    timeout: Optional[float] = None


class AttemptOutcome(Enum):
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    NON_RETRYABLE_FAILURE = "non_retryable_failure"
    RATE_LIMITED = "rate_limited"
    PLACEHOLDER_MISMATCH = "placeholder_mismatch"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class AttemptRecord:
    """Outcome of trying one provider for one text."""
    provider: str
    outcome: AttemptOutcome
    attempts: int = 1
    error: Optional[str] = None


@dataclass
class TranslationEntry:
    """One translated (or failed) text, aligned with the request."""
    source: str
    text: Optional[str] = None
    provider: Optional[str] = None
    cached: bool = False
    error: Optional["AllProvidersFailedError"] = None
    attempts: List[AttemptRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


@dataclass
class TranslationResult:
    """Result of a router call.

    Entries are in request order. A failed entry carries its error instead of
    a translation; nothing is dropped and the source text is never substituted.
    """
    entries: List[TranslationEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[TranslationEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> TranslationEntry:
        return self.entries[index]

    @property
    def translations(self) -> List[Optional[str]]:
        return [entry.text for entry in self.entries]

    @property
    def errors(self) -> Dict[int, "AllProvidersFailedError"]:
        return {
            index: entry.error
            for index, entry in enumerate(self.entries)
            if entry.error is not None
        }

    @property
    def failed_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.ok)

    @property
    def ok(self) -> bool:
        return self.failed_count == 0

    def raise_for_errors(self) -> None:
        """Raise the first per-entry error, for callers that reject partial results."""
        for entry in self.entries:
            if entry.error is not None:
                raise entry.error


@dataclass
class ProviderStats:
    """Counters kept by the router for one provider."""
    requests: int = 0
    successes: int = 0
    failures: int = 0

    @property
    def success_rate(self) -> float:
        total = self.successes + self.failures
        return self.successes / total if total else 0.0


@dataclass
class RouterStats:
    cache: "CacheStats"
    providers: Dict[str, ProviderStats] = field(default_factory=dict)
