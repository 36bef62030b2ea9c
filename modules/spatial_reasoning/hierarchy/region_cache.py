"""Region Cache with Per-Key Locking

Lazily populated cache owned by (injected into) a service instance. Entries
never expire on their own; they are dropped only by explicit invalidation.

Each key has its own lock, so a slow miss for one key (e.g. loading the cities
of one state) never blocks lookups for other keys. Concurrent misses for the
same key load once. Invalidating a key while it is loading discards that load
only; loads of other keys are unaffected.
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, List, Optional, Set

from geosim.utils import KeyedLocks

logger = logging.getLogger(__name__)

_MISSING = object()


class RegionCache:
    """Thread-safe lazily populated cache with explicit invalidation."""

    def __init__(self, name: str = "regions"):
        """Initialize an empty cache.

        Args:
            name: Label used in log lines and statistics
        """
        self.name = name
        self._entries: Dict[Hashable, Any] = {}
        self._key_locks = KeyedLocks()
        self._guard = threading.Lock()
        self._loading: Set[Hashable] = set()
        self._stale: Set[Hashable] = set()
        self._hits = 0
        self._misses = 0

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, loading it on first miss.

        Exceptions raised by ``loader`` propagate and nothing is cached.

        Args:
            key: Cache key
            loader: Zero-argument callable producing the value

        Returns:
            Cached or freshly loaded value
        """
        value = self._lookup(key)
        if value is not _MISSING:
            return value

        with self._key_locks.hold(key):
            value = self._lookup(key)
            if value is not _MISSING:
                return value

            with self._guard:
                self._misses += 1
                self._loading.add(key)

            logger.debug(f"Cache '{self.name}' miss for {key}")
            try:
                value = loader()
            except Exception:
                with self._guard:
                    self._loading.discard(key)
                    self._stale.discard(key)
                raise

            with self._guard:
                self._loading.discard(key)
                # Invalidated during the load, so the value may be stale
                if key in self._stale:
                    self._stale.discard(key)
                    logger.debug(f"Cache '{self.name}' discarded load for {key} after invalidation")
                else:
                    self._entries[key] = value
            return value

    def peek(self, key: Hashable) -> Optional[Any]:
        """Return the cached value without loading or counting a hit."""
        return self._entries.get(key)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def keys(self) -> List[Hashable]:
        with self._guard:
            return list(self._entries.keys())

    def invalidate(self, key: Hashable) -> bool:
        """Drop a single entry; returns True if it was cached."""
        with self._guard:
            if key in self._loading:
                self._stale.add(key)
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.info(f"Cache '{self.name}' invalidated {key}")
        return removed

    def invalidate_where(self, predicate: Callable[[Hashable], bool]) -> int:
        """Drop every entry whose key satisfies ``predicate``; returns the count."""
        with self._guard:
            self._stale.update(key for key in self._loading if predicate(key))
            doomed = [key for key in self._entries if predicate(key)]
            for key in doomed:
                del self._entries[key]
        logger.info(f"Cache '{self.name}' invalidated {len(doomed)} entries")
        return len(doomed)

    def clear(self) -> None:
        """Drop every entry."""
        with self._guard:
            self._stale.update(self._loading)
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cache '{self.name}' cleared ({count} entries)")

    def get_cache_stats(self) -> Dict[str, int]:
        """Get cache statistics for monitoring.

        Returns:
            Dictionary with entry, hit, miss and live lock counts
        """
        with self._guard:
            stats = {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }
        stats["key_locks"] = len(self._key_locks)
        return stats

    def _lookup(self, key: Hashable) -> Any:
        with self._guard:
            value = self._entries.get(key, _MISSING)
            if value is not _MISSING:
                self._hits += 1
            return value
