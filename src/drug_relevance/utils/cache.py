"""
Caching Layer for Drug Lookups

TTL- and size-bounded in-memory cache shared by the fallback drug-list
cache (Tier 2), the validation cache (final scored results) and the
RxNorm enrichment cache.

Entries are never mutated in place: a write replaces the whole entry.
Entry age is always measured against the injected monotonic clock.
"""

import time
import logging
from typing import Callable, Dict, Any, Optional, List
from dataclasses import dataclass
from threading import Lock

from src.drug_relevance.models import CacheStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Cache entry with value and creation time."""
    key: str
    value: Any
    created_at: float
    source_label: str = ""


class TTLCache:
    """
    Thread-safe TTL (Time-To-Live) cache with a hard size ceiling.

    Features:
    - Lazy expiration on read (expired entries are deleted and count as a miss)
    - Cleanup sweep once the cache reaches a fraction of its ceiling
    - Oldest-by-creation eviction when the ceiling would be exceeded
    - Cache statistics tracking

    Usage:
        cache = TTLCache(name="fallback", ttl_seconds=86400, max_size=200)

        cache.set("type 2 diabetes", ["metformin", "semaglutide"])
        drugs = cache.get("type 2 diabetes")  # None if expired or absent

        cache.clear()
    """

    def __init__(
        self,
        name: str = "cache",
        ttl_seconds: float = 24 * 60 * 60,
        max_size: int = 200,
        cleanup_ratio: float = 0.9,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize TTL cache.

        Args:
            name: Cache name used in log messages
            ttl_seconds: Entry time-to-live in seconds (default: 24 hours)
            max_size: Hard ceiling on the number of entries
            cleanup_ratio: Fraction of max_size at which a cleanup sweep runs before insert
            clock: Monotonic clock returning seconds (default: time.monotonic)
        """
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.cleanup_ratio = cleanup_ratio
        self._clock = clock or time.monotonic
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = Lock()

        # Statistics
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def _is_valid(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at < self.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache if it exists and has not expired.

        Args:
            key: Cache key (callers pass normalized keys)

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                self._misses += 1
                return None

            if not self._is_valid(entry, self._clock()):
                del self._cache[key]
                self._expirations += 1
                self._misses += 1
                logger.debug(f"[Cache:{self.name}] Expired entry removed: {key}")
                return None

            self._hits += 1
            return entry.value

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for key without touching hit/miss counters."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None or not self._is_valid(entry, self._clock()):
                return None
            return entry

    def age_seconds(self, key: str) -> Optional[float]:
        """Age of the entry stored under key, or None if absent."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            return self._clock() - entry.created_at

    def set(self, key: str, value: Any, source_label: str = ""):
        """
        Insert or replace an entry, created now.

        Args:
            key: Cache key
            value: Value to cache
            source_label: Free-text origin of the value (for debugging)
        """
        with self._lock:
            if len(self._cache) >= self.max_size * self.cleanup_ratio:
                self._cleanup_locked(incoming_key=key)

            self._cache[key] = CacheEntry(
                key=key,
                value=value,
                created_at=self._clock(),
                source_label=source_label,
            )

    def delete(self, key: str) -> bool:
        """
        Delete a specific key from cache.

        Args:
            key: Cache key to delete

        Returns:
            True if key was deleted, False if not found
        """
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> int:
        """
        Clear all cached values.

        Returns:
            Number of entries removed
        """
        with self._lock:
            size = len(self._cache)
            self._cache.clear()
        logger.info(f"[Cache:{self.name}] Cleared {size} entries")
        return size

    def cleanup(self) -> int:
        """
        Remove expired entries and enforce the size ceiling.

        Returns:
            Number of entries removed
        """
        with self._lock:
            return self._cleanup_locked()

    def _cleanup_locked(self, incoming_key: Optional[str] = None) -> int:
        now = self._clock()
        expired_keys = [
            key for key, entry in self._cache.items()
            if not self._is_valid(entry, now)
        ]
        for key in expired_keys:
            del self._cache[key]
        self._expirations += len(expired_keys)

        if expired_keys:
            logger.debug(f"[Cache:{self.name}] Cleaned {len(expired_keys)} expired entries")

        # Room is needed for a new key; a replacement reuses its slot.
        limit = self.max_size
        if incoming_key is not None and incoming_key not in self._cache:
            limit -= 1

        evicted = 0
        if len(self._cache) > limit:
            oldest_first: List[CacheEntry] = sorted(
                self._cache.values(), key=lambda e: e.created_at
            )
            for entry in oldest_first[:len(self._cache) - limit]:
                del self._cache[entry.key]
                evicted += 1
            self._evictions += evicted
            logger.info(f"[Cache:{self.name}] Evicted {evicted} oldest entries (LRU)")

        return len(expired_keys) + evicted

    def cache_stats(self) -> CacheStats:
        """Count total, valid and expired entries."""
        with self._lock:
            now = self._clock()
            valid = sum(1 for entry in self._cache.values() if self._is_valid(entry, now))
            total = len(self._cache)
        return CacheStats(total=total, valid=valid, expired=total - valid)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics for monitoring.

        Returns:
            Dictionary with cache stats
        """
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

            return {
                "name": self.name,
                "size": len(self._cache),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expirations": self._expirations,
                "hit_rate": round(hit_rate, 2),
                "total_requests": total_requests,
            }

    def keys(self) -> List[str]:
        """Snapshot of stored keys, live or expired."""
        with self._lock:
            return list(self._cache.keys())

    def __len__(self) -> int:
        """Return number of entries in cache."""
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        return self.get_entry(key) is not None
