"""In-process TTL cache with producer callables for misses."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, TypeVar

from assistant_core.constants import CACHE_TTLS, DEFAULT_CACHE_TTL, MAX_CACHE_ENTRIES

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

EntityType = Literal["project", "task", "conversation", "message"]

# Key prefixes to drop when an entity changes. `{id}` is the entity id.
RELATED_KEY_PREFIXES: dict[str, tuple[str, ...]] = {
    "project": (
        "project_details:{id}",
        "project_tasks:{id}",
        "user_projects:",
        "dashboard_stats:",
        "project_activity:",
    ),
    "task": ("project_tasks:", "user_tasks:", "dashboard_stats:", "project_activity:"),
    "conversation": ("chat_conversations:", "dashboard_stats:"),
    "message": ("chat_messages:{id}", "chat_conversations:", "dashboard_stats:"),
}


@dataclass
class CacheEntry:
    """A cached value and its lifetime, in clock seconds."""

    value: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """True once the entry has outlived its TTL."""
        return now - self.created_at > self.ttl


@dataclass
class CacheStats:
    """Snapshot of cache counters. `hit_rate` is a percentage."""

    hits: int
    misses: int
    sets: int
    evictions: int
    hit_rate: float
    size: int
    max_entries: int


class CacheService:
    """Key-value cache with per-key-type TTLs and oldest-first eviction.

    Expiry is checked lazily on read. Concurrent misses for the same key
    may each call their producer.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_CACHE_TTL,
        ttls: Mapping[str, float] = CACHE_TTLS,
        max_entries: int = MAX_CACHE_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache."""
        self.default_ttl = default_ttl
        self.ttls = dict(ttls)
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._evictions = 0

    def _ttl_for(self, key: str) -> float:
        for key_type, ttl in self.ttls.items():
            if key.startswith(key_type):
                return ttl
        return self.default_ttl

    async def get(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        *,
        force_refresh: bool = False,
        ttl: float | None = None,
    ) -> T:
        """Return the cached value for `key`, calling `producer` when needed.

        Producer errors propagate and nothing is stored.
        """
        if not force_refresh:
            entry = self._entries.get(key)
            if entry is not None and not entry.is_expired(self._clock()):
                self._hits += 1
                LOGGER.debug("Cache hit: %s", key)
                return entry.value
            self._misses += 1
            if entry is not None:
                del self._entries[key]
                LOGGER.debug("Cache expired: %s", key)
            else:
                LOGGER.debug("Cache miss: %s", key)

        value = await producer()
        self.set(key, value, ttl)
        return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store `value`; evicts the oldest entries beyond `max_entries`."""
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            value=value,
            created_at=self._clock(),
            ttl=self._ttl_for(key) if ttl is None else ttl,
        )
        self._sets += 1
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            self._evictions += 1
            LOGGER.debug("Cache evicted: %s", oldest)

    def peek(self, key: str) -> Any | None:
        """Live value for `key` without touching the counters."""
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry.value

    def invalidate(self, key: str) -> bool:
        """Drop one key. Returns whether it was present."""
        return self._entries.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with `prefix`. Returns how many were dropped."""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def invalidate_related(self, entity_type: EntityType, entity_id: str) -> int:
        """Drop every key derived from an entity of `entity_type`."""
        removed = sum(
            self.invalidate_prefix(prefix.format(id=entity_id))
            for prefix in RELATED_KEY_PREFIXES.get(entity_type, ())
        )
        LOGGER.debug("Invalidated %d keys for %s %s", removed, entity_type, entity_id)
        return removed

    def get_stats(self) -> CacheStats:
        """Current counters and hit rate."""
        lookups = self._hits + self._misses
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            sets=self._sets,
            evictions=self._evictions,
            hit_rate=100.0 * self._hits / lookups if lookups else 0.0,
            size=len(self._entries),
            max_entries=self.max_entries,
        )

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        self._entries.clear()
        self._hits = self._misses = self._sets = self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())
