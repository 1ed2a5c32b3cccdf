"""Leaky-bucket rate smoothing.

Each (handle, key) pair owns one bucket ``{"bucket": int, "last_updated": int}``
at a time-independent cache key. The bucket drains at ``threshold / interval``
units per second and every allowed call adds ``increment`` units. Calls are
throttled while the drained level is at or above ``burst_rate`` (or
``threshold`` when no burst rate is configured).

A throttled call writes nothing: neither the drain nor the timestamp is
persisted, so a saturated bucket keeps its stored state untouched.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from throttlekit.adapters.storage.base import AbstractStore
from throttlekit.strategies.base import AbstractStrategy, StrategyName
from throttlekit.utils.cache_keys import build_bucket_key

if TYPE_CHECKING:
    from throttlekit.core.options import ThrottleOptions

Bucket = dict[str, int]


def _bucket(level: int, now: int) -> Bucket:
    return {"bucket": level, "last_updated": now}


class LeakyBucketStrategy(AbstractStrategy):
    """Continuously draining counter allowing bursts up to ``burst_rate``."""

    name = StrategyName.LEAKY_BUCKET

    def build_key(self, options: ThrottleOptions, now: float) -> str:
        return build_bucket_key(options.handle, options.key, prefix=self.key_prefix)

    def counter(self, store: AbstractStore, cache_key: str, options: ThrottleOptions, now: int) -> Bucket:
        """Return the drained view of the stored bucket as a new dict."""

        state = store.read(cache_key)
        if not state:
            return _bucket(0, now)

        level = int(state.get("bucket") or 0)
        last_updated = state.get("last_updated")
        elapsed = max(0, now - int(last_updated)) if last_updated is not None else 0

        drained = math.floor(elapsed * options.threshold / options.interval)
        return _bucket(max(0, level - drained), now)

    def at_threshold(self, counter: Bucket, options: ThrottleOptions) -> bool:
        return counter["bucket"] >= options.capacity

    def increment(
        self, store: AbstractStore, cache_key: str, options: ThrottleOptions, counter: Bucket, now: int
    ) -> Bucket:
        state = _bucket(counter["bucket"] + self.step(options.increment), now)
        store.write(cache_key, state)
        return state

    def decrement(
        self, store: AbstractStore, cache_key: str, options: ThrottleOptions, counter: Bucket, now: int
    ) -> Bucket:
        state = _bucket(max(0, counter["bucket"] - self.step(options.decrement)), now)
        store.write(cache_key, state)
        return state

    def reset(self, store: AbstractStore, cache_key: str, options: ThrottleOptions, now: int) -> None:
        store.write(cache_key, _bucket(0, now))

    def count_value(self, counter: Bucket) -> int:
        return counter["bucket"]

    def retry_after(self, counter: Bucket, options: ThrottleOptions, now: int) -> int:
        excess = counter["bucket"] - options.capacity + 1
        return max(1, math.ceil(excess * options.interval / options.threshold))
