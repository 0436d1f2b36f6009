"""Translation cache with TTL expiry and LRU eviction."""

import hashlib
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10_000
DEFAULT_TTL = 7 * 24 * 60 * 60

_NIL = -1


def fingerprint(text: str, source_language: str, target_language: str) -> str:
    """Deterministic cache key for a text and language pair."""
    payload = "\x1f".join((source_language, target_language, text))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    size: int = 0
    capacity: int = 0

    @property
    def hit_ratio(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class CacheBackend(ABC):
    """Key/value contract the router relies on.

    ``get`` returns None for a missing or expired key; cached values are
    always strings.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        ...

    @abstractmethod
    def evict(self, key: str) -> bool:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def stats(self) -> CacheStats:
        ...


class _Slot:
    __slots__ = ("key", "value", "inserted_at", "last_accessed_at", "ttl", "prev", "next")

    def __init__(self, key: str, value: str, now: float, ttl: Optional[float]):
        self.key = key
        self.value = value
        self.inserted_at = now
        self.last_accessed_at = now
        self.ttl = ttl
        self.prev = _NIL
        self.next = _NIL

    def expired(self, now: float) -> bool:
        return self.ttl is not None and now - self.inserted_at >= self.ttl


class InMemoryCache(CacheBackend):
    """In-process TTL + LRU cache.

    Entries live in a flat list of slots addressed by index. A dict maps keys
    to slot indices and each slot holds the indices of its neighbours in
    recency order, so the recency list is just integers. Freed slots are
    reused through a free list.

    Args:
        capacity: Maximum number of entries
        ttl: Default time-to-live in seconds, None for no expiry
        clock: Time source, ``time.time`` by default
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        ttl: Optional[float] = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ):
        if capacity < 1:
            raise ValueError("Cache capacity must be at least 1")
        self.capacity = capacity
        self.default_ttl = ttl
        self._clock = clock
        self._slots: List[Optional[_Slot]] = []
        self._index: Dict[str, int] = {}
        self._free: List[int] = []
        self._head = _NIL  # most recently used
        self._tail = _NIL  # least recently used
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._index)

    def __contains__(self, key: str) -> bool:
        """Membership test that neither counts as a lookup nor refreshes recency."""
        with self._lock:
            index = self._index.get(key)
            return index is not None and not self._slots[index].expired(self._clock())

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            index = self._index.get(key)
            if index is None:
                self._misses += 1
                return None

            slot = self._slots[index]
            now = self._clock()
            if slot.expired(now):
                self._release(index)
                self._expirations += 1
                self._misses += 1
                return None

            slot.last_accessed_at = now
            self._unlink(index)
            self._push_front(index)
            self._hits += 1
            return slot.value

    def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            now = self._clock()
            index = self._index.get(key)
            if index is not None:
                slot = self._slots[index]
                slot.value = value
                slot.ttl = ttl
                slot.inserted_at = now
                slot.last_accessed_at = now
                self._unlink(index)
                self._push_front(index)
                return

            if len(self._index) >= self.capacity:
                self._evict_lru()
            self._insert(_Slot(key, value, now, ttl))

    def evict(self, key: str) -> bool:
        with self._lock:
            index = self._index.get(key)
            if index is None:
                return False
            self._release(index)
            return True

    def clear(self) -> None:
        with self._lock:
            self._slots.clear()
            self._index.clear()
            self._free.clear()
            self._head = self._tail = _NIL

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
                size=len(self._index),
                capacity=self.capacity,
            )

    def keys(self) -> List[str]:
        """Keys from least to most recently used."""
        with self._lock:
            return [slot.key for slot in self._iter_slots()]

    def _iter_slots(self) -> Iterator[_Slot]:
        index = self._tail
        while index != _NIL:
            slot = self._slots[index]
            yield slot
            index = slot.prev

    def _insert(self, slot: _Slot) -> int:
        if self._free:
            index = self._free.pop()
            self._slots[index] = slot
        else:
            index = len(self._slots)
            self._slots.append(slot)
        self._index[slot.key] = index
        self._push_front(index)
        return index

    def _evict_lru(self) -> None:
        if self._tail == _NIL:
            return
        key = self._slots[self._tail].key
        self._release(self._tail)
        self._evictions += 1
        logger.debug(f"Evicted least recently used cache entry {key[:12]}")

    def _release(self, index: int) -> None:
        slot = self._slots[index]
        self._unlink(index)
        del self._index[slot.key]
        self._slots[index] = None
        self._free.append(index)

    def _push_front(self, index: int) -> None:
        slot = self._slots[index]
        slot.prev = _NIL
        slot.next = self._head
        if self._head != _NIL:
            self._slots[self._head].prev = index
        self._head = index
        if self._tail == _NIL:
            self._tail = index

    def _unlink(self, index: int) -> None:
        slot = self._slots[index]
        if slot.prev != _NIL:
            self._slots[slot.prev].next = slot.next
        else:
            self._head = slot.next
        if slot.next != _NIL:
            self._slots[slot.next].prev = slot.prev
        else:
            self._tail = slot.prev
        slot.prev = slot.next = _NIL


class JsonFileCache(InMemoryCache):
    """An :class:`InMemoryCache` that can be persisted to a JSON file.

    Entries are written from least to most recently used so that loading a
    file restores the recency order. Expired entries are skipped on load.
    """

    VERSION = 1

    def __init__(
        self,
        path: Union[str, Path],
        capacity: int = DEFAULT_CAPACITY,
        ttl: Optional[float] = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(capacity=capacity, ttl=ttl, clock=clock)
        self.path = Path(path)

    def load(self) -> int:
        """Load entries from disk. Returns the number of entries restored."""
        if not self.path.exists():
            return 0

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load translation cache from {self.path}: {e}")
            return 0

        if not isinstance(data, dict) or not isinstance(data.get('entries', []), list):
            logger.warning(f"Ignoring cache file {self.path}: not a translation cache document")
            return 0

        if data.get('version') != self.VERSION:
            logger.warning(f"Ignoring cache file {self.path} with unknown version {data.get('version')}")
            return 0

        restored = 0
        with self._lock:
            now = self._clock()
            skipped = 0
            for raw in data.get('entries', []):
                try:
                    slot = self._slot_from_json(raw)
                    expired = slot.expired(now)
                except (KeyError, TypeError, ValueError):
                    skipped += 1
                    continue
                if expired or slot.key in self._index:
                    continue
                if len(self._index) >= self.capacity:
                    self._evict_lru()
                self._insert(slot)
                restored += 1

        if skipped:
            logger.warning(f"Skipped {skipped} malformed entries in {self.path}")
        logger.info(f"Loaded {restored} cached translations from {self.path}")
        return restored

    @staticmethod
    def _slot_from_json(raw: dict) -> _Slot:
        key, value = raw['key'], raw['value']
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError("cache keys and values must be strings")
        ttl = raw.get('ttl')
        slot = _Slot(key, value, float(raw['inserted_at']), None if ttl is None else float(ttl))
        slot.last_accessed_at = float(raw.get('last_accessed_at', slot.inserted_at))
        return slot

    def save(self) -> bool:
        """Write all live entries to disk atomically.

        Returns:
            bool: True if the cache was written, False otherwise
        """
        with self._lock:
            now = self._clock()
            entries = [
                {
                    'key': slot.key,
                    'value': slot.value,
                    'inserted_at': slot.inserted_at,
                    'last_accessed_at': slot.last_accessed_at,
                    'ttl': slot.ttl,
                }
                for slot in self._iter_slots()
                if not slot.expired(now)
            ]

        temp_path = self.path.with_suffix('.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump({'version': self.VERSION, 'entries': entries}, f, ensure_ascii=False)
            temp_path.replace(self.path)
            logger.debug(f"Saved {len(entries)} cached translations to {self.path}")
            return True
        except OSError as e:
            logger.error(f"Failed to save translation cache to {self.path}: {e}")
            if temp_path.exists():
                temp_path.unlink()
            return False
