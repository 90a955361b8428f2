"""In-memory cache with per-entry expiry and hit/miss accounting.

The tool service keeps fetched pages and search results here so repeated
questions about the same page skip the network. Values are stored as-is;
parsed page structures are immutable and can be shared between readers.

Example
-------
>>> from moegirl_pages.cache import ExpiringCache, doc_key
>>> cache = ExpiringCache(default_ttl=60)
>>> cache.set(doc_key("Hatsune Miku"), "wikitext")
>>> cache.get(doc_key("Hatsune Miku"))
'wikitext'
>>> cache.stats().cache_hits
1
"""

from __future__ import annotations

import dataclasses as dc
import threading
import time
import typing as typ

from ._constants import DEFAULT_CACHE_TTL


def search_key(keyword: str, limit: int = 5) -> str:
    """Return the cache key for a search request."""
    return f"search:{keyword}:{limit}"


def doc_key(identifier: int | str) -> str:
    """Return the cache key for a page addressed by id or title."""
    return f"doc:{identifier}"


def structure_key(identifier: int | str) -> str:
    """Return the cache key for the parsed structure of a page."""
    return f"structure:{identifier}"


@dc.dataclass(slots=True)
class CacheStats:
    """Snapshot of cache usage counters."""

    total_entries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    hit_rate: float = 0.0


@dc.dataclass(slots=True)
class _Entry:
    value: typ.Any
    stored_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl


class ExpiringCache:
    """Thread-safe mapping whose entries expire after a time-to-live.

    Parameters
    ----------
    default_ttl : float, optional
        Lifetime in seconds for entries stored without an explicit ``ttl``.
        Defaults to thirty minutes.
    clock : Callable[[], float], optional
        Monotonic time source; tests inject a fake clock.
    """

    def __init__(
        self,
        *,
        default_ttl: float = DEFAULT_CACHE_TTL,
        clock: typ.Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def set(self, key: str, value: typ.Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        lifetime = self.default_ttl if ttl is None else ttl
        entry = _Entry(value=value, stored_at=self._clock(), ttl=lifetime)
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str) -> typ.Any | None:
        """Return the live value for ``key`` or ``None``; expired entries are evicted."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expired(self._clock()):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        """Return whether ``key`` holds a live entry without touching the counters."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.expired(self._clock()):
                del self._entries[key]
                return False
            return True

    def remaining_ttl(self, key: str) -> float:
        """Return the seconds left before ``key`` expires, or ``0.0``."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return 0.0
            remaining = entry.ttl - (self._clock() - entry.stored_at)
            return max(remaining, 0.0)

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset the counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def cleanup(self) -> int:
        """Evict expired entries and return how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def keys(self) -> list[str]:
        """Return the stored keys, including ones that may have expired."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        """Return the current entry count and hit/miss counters."""
        with self._lock:
            lookups = self._hits + self._misses
            return CacheStats(
                total_entries=len(self._entries),
                cache_hits=self._hits,
                cache_misses=self._misses,
                hit_rate=self._hits / lookups if lookups else 0.0,
            )


__all__ = ["CacheStats", "ExpiringCache", "doc_key", "search_key", "structure_key"]
