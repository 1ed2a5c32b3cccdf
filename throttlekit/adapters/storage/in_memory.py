"""In-memory counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a re-entrant lock around shared state, and exposes it via
  ``lock()`` so the limiter's read-modify-write runs atomically.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any, Callable

from throttlekit.adapters.storage.base import AbstractStore

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    expires_at: float | None


class InMemoryStore(AbstractStore):
    """Thread-safe, in-memory store with optional TTL and LRU eviction.

    Attributes:
        ttl_seconds: Time-to-live applied to every write (None keeps entries).
        max_entries: Maximum number of stored keys (None for unlimited).
    """

    def __init__(
        self,
        *,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._store: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.RLock()
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryStore(ttl_seconds={self._ttl}, max_entries={self._max_entries}, "
            f"size={len(self._store)}, evictions={self._evictions})"
        )

    def read(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            if entry.expires_at is not None and self._clock() >= entry.expires_at:
                self._evict_single(key)
                return None

            self._store.move_to_end(key)  # mark as recently used
            return entry.value

    def write(self, key: str, value: Any) -> None:
        with self._lock:
            expires_at = self._clock() + self._ttl if self._ttl is not None else None
            self._store[key] = _Entry(value=value, expires_at=expires_at)
            self._store.move_to_end(key)
            self._evict_if_over_capacity_locked()

            logger.debug(
                "store.write",
                extra={
                    "cache_key": key[-16:],
                    "size": len(self._store),
                },
            )

    def lock(self, key: str) -> AbstractContextManager[Any]:
        # Single lock shared by every key.
        return self._lock

    def clear(self) -> None:
        """Remove all entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._evictions = 0

    def stats(self) -> dict[str, int | float | None]:
        """Return lightweight store metrics without exposing values."""

        with self._lock:
            return {
                "ttl_seconds": self._ttl,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "evictions": self._evictions,
            }

    def _evict_single(self, key: str) -> None:
        if self._store.pop(key, None) is not None:
            self._evictions += 1

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._store) > self._max_entries:
            # popitem(last=False) removes the least recently used entry
            self._store.popitem(last=False)
            self._evictions += 1
