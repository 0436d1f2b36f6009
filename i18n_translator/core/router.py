"""Fallback routing of translation batches across providers."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from .batching import BatchSplitter
from .cache import CacheBackend, InMemoryCache, fingerprint
from .exceptions import (
    AllProvidersFailedError,
    ConfigurationError,
    NoProvidersConfiguredError,
    PlaceholderMismatchError,
    ProviderAuthError,
    ProviderError,
    ProviderTransientError,
    RateLimitWaitExceeded,
    TranslationTimeoutError,
    ValidationError,
)
from .models import (
    AttemptOutcome,
    AttemptRecord,
    ProviderConfig,
    ProviderStats,
    RouterStats,
    TranslationEntry,
    TranslationRequest,
    TranslationResult,
)
from .placeholders import PlaceholderGuard
from .rate_limiter import RateLimiter
from .retry import RetryPolicy

if TYPE_CHECKING:
    from ..translators.base import BaseTranslator

logger = logging.getLogger(__name__)

_DEEPL_LANGUAGES = (
    'bg', 'cs', 'da', 'de', 'el', 'es', 'et', 'fi', 'fr', 'hu', 'id', 'it',
    'ja', 'ko', 'lt', 'lv', 'nb', 'nl', 'pl', 'pt', 'ro', 'ru', 'sk', 'sl',
    'sv', 'tr', 'uk', 'zh',
)
_GOOGLE_LANGUAGES = ('ar', 'th', 'vi', 'hi')

# Target language -> provider tried first for it
DEFAULT_LANGUAGE_PREFERENCES: Dict[str, str] = {
    **{lang: 'deepl' for lang in _DEEPL_LANGUAGES},
    **{lang: 'google' for lang in _GOOGLE_LANGUAGES},
}


@dataclass
class _ProviderSlot:
    translator: "BaseTranslator"
    limiter: RateLimiter
    retry: RetryPolicy
    stats: ProviderStats = field(default_factory=ProviderStats)

    @property
    def name(self) -> str:
        return self.translator.name

    @property
    def config(self) -> ProviderConfig:
        return self.translator.config


@dataclass
class _InFlight:
    """Requests made so far by the provider currently handling a chunk."""
    provider: str
    requests: int = 0


def _outcome_for(error: ProviderError) -> AttemptOutcome:
    if isinstance(error, RateLimitWaitExceeded):
        return AttemptOutcome.RATE_LIMITED
    if isinstance(error, ProviderTransientError):
        return AttemptOutcome.TRANSIENT_FAILURE
    return AttemptOutcome.NON_RETRYABLE_FAILURE


class FallbackRouter:
    """Translates batches through an ordered chain of providers.

    Each provider gets its own rate limiter, retry policy and counters. For a
    request, every text is looked up in the cache first; the rest go to the
    providers in chain order, split into chunks the provider accepts. A text
    moves on to the next provider when its chunk fails after retries or when
    its translation does not keep the source placeholders. Texts that no
    provider could translate are reported per entry; the call itself only
    raises for invalid input.

    Args:
        translators: Provider clients, one per provider name
        cache: Cache backend, an :class:`InMemoryCache` by default
        language_preferences: Target language -> preferred provider name.
            Replaces :data:`DEFAULT_LANGUAGE_PREFERENCES` when given.
        guard: Placeholder checker
        sleep: Coroutine used for retry backoff
    """

    def __init__(
        self,
        translators: Sequence["BaseTranslator"],
        cache: Optional[CacheBackend] = None,
        language_preferences: Optional[Mapping[str, str]] = None,
        guard: Optional[PlaceholderGuard] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not translators:
            raise NoProvidersConfiguredError()

        self._slots: List[_ProviderSlot] = []
        seen = set()
        for translator in translators:
            if translator.name in seen:
                raise ConfigurationError(f"Provider {translator.name!r} configured twice")
            seen.add(translator.name)
            config = translator.config
            self._slots.append(_ProviderSlot(
                translator=translator,
                limiter=RateLimiter.from_config(config.rate_limit, name=config.name),
                retry=RetryPolicy.from_config(config, sleep=sleep),
            ))

        self.cache = cache if cache is not None else InMemoryCache()
        self.guard = guard or PlaceholderGuard()
        if language_preferences is None:
            language_preferences = DEFAULT_LANGUAGE_PREFERENCES
        self.language_preferences = {
            lang.lower().replace('_', '-'): provider
            for lang, provider in language_preferences.items()
        }
        logger.info(
            f"Router configured with providers: "
            f"{', '.join(f'{s.name} (tier {int(s.config.tier)})' for s in self._slots)}"
        )

    def provider_chain(self, target_language: str) -> List["BaseTranslator"]:
        """Providers in the order they are tried for ``target_language``.

        Providers preferred for the language come first, then the others;
        each group is ordered by tier and keeps configuration order on ties.
        """
        return [slot.translator for slot in self._chain(target_language)]

    def _chain(self, target_language: str) -> List[_ProviderSlot]:
        language = target_language.lower().replace('_', '-')
        primary = language.split('-')[0]
        preferred = self.language_preferences.get(language) or self.language_preferences.get(primary)

        def is_preferred(slot: _ProviderSlot) -> bool:
            languages = slot.config.preferred_languages
            return slot.name == preferred or language in languages or primary in languages

        chain = sorted(self._slots, key=lambda slot: (not is_preferred(slot), slot.config.tier))
        logger.debug(f"Provider chain for {target_language}: {[slot.name for slot in chain]}")
        return chain

    def available_providers(self) -> List[str]:
        """Names of the providers that have the credentials they need."""
        return [slot.name for slot in self._slots if slot.translator.is_available()]

    def stats(self) -> RouterStats:
        return RouterStats(
            cache=self.cache.stats(),
            providers={
                slot.name: ProviderStats(
                    requests=slot.stats.requests,
                    successes=slot.stats.successes,
                    failures=slot.stats.failures,
                )
                for slot in self._slots
            },
        )

    async def translate_texts(
        self,
        texts: List[str],
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> TranslationResult:
        """Shortcut for :meth:`translate` without building a request."""
        return await self.translate(TranslationRequest(
            texts=texts,
            source_language=source_language,
            target_language=target_language,
            context=context,
            timeout=timeout,
        ))

    async def translate(self, request: TranslationRequest) -> TranslationResult:
        """Translate every text in ``request``.

        Returns:
            A result with one entry per input text, in input order

        Raises:
            ValidationError: If the request is malformed
        """
        self._validate(request)
        if not request.texts:
            return TranslationResult()

        entries = [TranslationEntry(source=text) for text in request.texts]
        pending = []
        for index, text in enumerate(request.texts):
            cached = self.cache.get(fingerprint(text, request.source_language, request.target_language))
            if cached is not None:
                entries[index].text = cached
                entries[index].cached = True
            else:
                pending.append(index)

        if pending:
            in_flight: Dict[int, _InFlight] = {}
            route = self._route(request, pending, entries, in_flight)
            try:
                if request.timeout is None:
                    await route
                else:
                    await asyncio.wait_for(route, timeout=request.timeout)
            except asyncio.TimeoutError:
                self._expire(request, entries, in_flight)

        result = TranslationResult(entries)
        cache_hits = len(entries) - len(pending)
        logger.info(
            f"Translated {len(entries) - result.failed_count}/{len(entries)} text(s) "
            f"{request.source_language}->{request.target_language} "
            f"({cache_hits} from cache, {result.failed_count} failed)"
        )
        return result

    def _validate(self, request: TranslationRequest) -> None:
        for label, language in (('source', request.source_language), ('target', request.target_language)):
            if not isinstance(language, str) or not language.strip():
                raise ValidationError(f"A {label} language code is required")
        if not isinstance(request.texts, (list, tuple)):
            raise ValidationError("texts must be a list of strings")
        for index, text in enumerate(request.texts):
            if not isinstance(text, str):
                raise ValidationError(f"Text at index {index} is {type(text).__name__}, not str")
        if request.timeout is not None and request.timeout < 0:
            raise ValidationError("timeout cannot be negative")

    async def _route(
        self,
        request: TranslationRequest,
        pending: List[int],
        entries: List[TranslationEntry],
        in_flight: Dict[int, _InFlight],
    ) -> None:
        remaining = pending
        for slot in self._chain(request.target_language):
            if not remaining:
                break

            chunks = BatchSplitter(slot.config.batch_size_limit).split(remaining)
            logger.debug(f"Sending {len(remaining)} text(s) to {slot.name} in {len(chunks)} chunk(s)")
            outcomes = await asyncio.gather(*(
                self._run_chunk(slot, chunk, request, entries, in_flight)
                for chunk in chunks
            ))
            resolved = set(BatchSplitter.merge(outcomes))
            remaining = [index for index in remaining if index not in resolved]
            if remaining:
                logger.warning(
                    f"{slot.name} left {len(remaining)} text(s) untranslated, trying next provider"
                )

        for index in remaining:
            entry = entries[index]
            entry.error = AllProvidersFailedError(entry.source, entry.attempts)
            logger.error(f"All providers failed for text {index}: {entry.error}")

    async def _run_chunk(
        self,
        slot: _ProviderSlot,
        indices: List[int],
        request: TranslationRequest,
        entries: List[TranslationEntry],
        in_flight: Dict[int, _InFlight],
    ) -> List[int]:
        """Send one chunk to one provider. Returns the indices it resolved."""
        texts = [entries[index].source for index in indices]
        progress = _InFlight(slot.name)
        for index in indices:
            in_flight[index] = progress

        async def operation() -> List[str]:
            if not slot.translator.is_available():
                raise ProviderAuthError(slot.name, "API key not configured")
            await slot.limiter.acquire()
            progress.requests += 1
            slot.stats.requests += 1
            try:
                return await asyncio.wait_for(
                    slot.translator.translate_batch(
                        texts,
                        source_language=request.source_language,
                        target_language=request.target_language,
                        context=request.context,
                    ),
                    timeout=slot.config.request_timeout,
                )
            except asyncio.TimeoutError as e:
                raise ProviderTransientError(
                    slot.name, f"request timed out after {slot.config.request_timeout:.2f}s"
                ) from e
            except ProviderError:
                raise
            except Exception as e:
                logger.error(f"Unexpected error from {slot.name}: {e}", exc_info=True)
                raise ProviderError(slot.name, f"unexpected error: {e}") from e

        try:
            translations, attempts = await slot.retry.run(operation)
        except ProviderError as e:
            record = AttemptRecord(slot.name, _outcome_for(e), progress.requests, e.message)
            for index in indices:
                in_flight.pop(index, None)
                entries[index].attempts.append(record)
            slot.stats.failures += len(indices)
            logger.warning(f"{slot.name} failed for {len(indices)} text(s): {e.message}")
            return []

        resolved = []
        for index, translated in zip(indices, translations):
            in_flight.pop(index, None)
            entry = entries[index]
            try:
                self.guard.verify(entry.source, translated, provider=slot.name)
            except PlaceholderMismatchError as e:
                entry.attempts.append(AttemptRecord(
                    slot.name, AttemptOutcome.PLACEHOLDER_MISMATCH, attempts, e.message
                ))
                slot.stats.failures += 1
                logger.warning(f"Rejected translation of text {index} from {e}")
                continue

            entry.attempts.append(AttemptRecord(slot.name, AttemptOutcome.SUCCESS, attempts))
            entry.text = translated
            entry.provider = slot.name
            self.cache.set(
                fingerprint(entry.source, request.source_language, request.target_language),
                translated,
            )
            slot.stats.successes += 1
            resolved.append(index)
        return resolved

    def _expire(
        self,
        request: TranslationRequest,
        entries: List[TranslationEntry],
        in_flight: Dict[int, _InFlight],
    ) -> None:
        """Turn every unresolved entry into a timeout error after the deadline."""
        expired = 0
        for index, entry in enumerate(entries):
            if entry.text is not None or entry.error is not None:
                continue
            progress = in_flight.get(index)
            if progress is not None:
                entry.attempts.append(AttemptRecord(
                    progress.provider, AttemptOutcome.TIMED_OUT, progress.requests, "deadline exceeded"
                ))
            entry.error = TranslationTimeoutError(entry.source, entry.attempts, request.timeout)
            expired += 1
        logger.error(f"Deadline of {request.timeout:.2f}s exceeded, {expired} text(s) timed out")

    async def close(self):
        """Close every provider client."""
        for slot in self._slots:
            await slot.translator.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
