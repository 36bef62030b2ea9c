"""
Per-key locking for the GeoSim spatial reasoning core.

Hands out one lock per key while at least one thread holds or waits for it,
and forgets the lock as soon as the last user leaves, so the lock table is
bounded by the keys in use rather than every key ever seen.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks:
    """Reference-counted table of per-key locks."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, _KeyLock] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock of ``key`` for the duration of the block."""
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
