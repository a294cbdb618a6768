"""In-memory cache store with tag-based invalidation.

Entries live for the lifetime of the process. Each entry carries a set of
tags (operation names, ``student-<id>`` markers) so that every result derived
from one subject's records can be dropped in a single call.

Key Features:
- Tag index kept in lockstep with the entry map
- TTL enforced on read through ``max_age``; stale values are never returned
- Optional LRU bound on the number of entries
- Hit/miss/eviction statistics for monitoring

Example:
    >>> store = CacheStore(max_entries=50)
    >>> store.set("emotion-patterns:abc", [], tags=["emotion-patterns", "student-7"])
    >>> store.invalidate_by_tag("student-7")
    1
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Individual cache entry with metadata."""

    key: str
    value: Any
    tags: FrozenSet[str]
    created_at: float
    last_access: float
    hit_count: int = 0

    def age(self, now: float) -> float:
        return now - self.created_at


@dataclass
class CacheStatistics:
    """Cache performance statistics for monitoring."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0
    expirations: int = 0
    invalidations: int = 0

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def record_set(self) -> None:
        self.sets += 1

    def record_eviction(self) -> None:
        self.evictions += 1

    def record_expiration(self) -> None:
        self.expirations += 1

    def record_invalidation(self, reason: str = "manual", count: int = 1) -> None:
        """Record cache invalidation."""
        self.invalidations += count
        logger.debug("Cache invalidation: reason=%s, count=%d", reason, count)

    def hit_rate(self) -> float:
        """Fraction of lookups served from the cache."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        self.hits = self.misses = self.sets = 0
        self.evictions = self.expirations = self.invalidations = 0

    def to_dict(self) -> Dict[str, Any]:
        """Export statistics as dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "invalidations": self.invalidations,
            "hit_rate": self.hit_rate(),
        }


class CacheStore:
    """Key/value store with a tag index, read-time TTL and LRU bound.

    Args:
        max_entries: Upper bound on live entries; ``None`` disables eviction.
        clock: Monotonic time source in seconds, injectable for tests.
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._tag_index: Dict[str, Set[str]] = {}
        self.stats = CacheStatistics()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None, *, max_age: Optional[float] = None) -> Any:
        """Return the cached value for ``key`` or ``default`` on a miss.

        Args:
            key: Cache key
            default: Returned when the key is absent or stale
            max_age: Entries older than this many seconds count as misses and
                are removed
        """
        entry = self._lookup(key, max_age)
        if entry is None:
            self.stats.record_miss()
            return default
        entry.hit_count += 1
        entry.last_access = self._clock()
        self._entries.move_to_end(key)
        self.stats.record_hit()
        return entry.value

    def has(self, key: str, *, max_age: Optional[float] = None) -> bool:
        """Check for a live entry without touching recency or statistics."""
        return self._lookup(key, max_age) is not None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def tags(self) -> Dict[str, int]:
        """Live tags and the number of entries carrying each."""
        return {tag: len(keys) for tag, keys in self._tag_index.items()}

    def _lookup(self, key: str, max_age: Optional[float]) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if max_age is not None and entry.age(self._clock()) > max_age:
            self._remove(key)
            self.stats.record_expiration()
            logger.debug("Cache entry expired: %s", key)
            return None
        return entry

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, tags: Iterable[str] = ()) -> None:
        """Store ``value`` under ``key``, replacing any previous entry.

        Tags of a replaced entry are released before the new ones are indexed.
        """
        if key in self._entries:
            self._remove(key)

        now = self._clock()
        entry = CacheEntry(
            key=key,
            value=value,
            tags=frozenset(tags),
            created_at=now,
            last_access=now,
        )
        self._entries[key] = entry
        for tag in entry.tags:
            self._tag_index.setdefault(tag, set()).add(key)
        self.stats.record_set()

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._evict_lru()

    def delete(self, key: str) -> bool:
        """Remove a single entry. Returns whether it existed."""
        if key not in self._entries:
            return False
        self._remove(key)
        return True

    def invalidate_by_tag(self, tag: str) -> int:
        """Remove every entry carrying ``tag`` and return how many went."""
        keys = self._tag_index.get(tag)
        if not keys:
            return 0
        removed = 0
        for key in list(keys):
            if key in self._entries:
                self._remove(key)
                removed += 1
        self._tag_index.pop(tag, None)
        if removed:
            self.stats.record_invalidation(reason=f"tag:{tag}", count=removed)
            logger.info("Invalidated %d cache entries tagged %s", removed, tag)
        return removed

    def purge_expired(self, max_age: float) -> int:
        """Eagerly drop all entries older than ``max_age`` seconds."""
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if entry.age(now) > max_age]
        for key in stale:
            self._remove(key)
            self.stats.record_expiration()
        return len(stale)

    def clear(self) -> int:
        """Drop every entry. Returns the number removed."""
        count = len(self._entries)
        self._entries.clear()
        self._tag_index.clear()
        if count:
            self.stats.record_invalidation(reason="clear", count=count)
            logger.info("Cleared %d cache entries", count)
        return count

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _remove(self, key: str) -> CacheEntry:
        entry = self._entries.pop(key)
        for tag in entry.tags:
            keys = self._tag_index.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tag_index[tag]
        return entry

    def _evict_lru(self) -> None:
        key = next(iter(self._entries))
        self._remove(key)
        self.stats.record_eviction()
        logger.debug("Evicted least recently used cache entry: %s", key)


__all__ = ["CacheEntry", "CacheStatistics", "CacheStore"]
