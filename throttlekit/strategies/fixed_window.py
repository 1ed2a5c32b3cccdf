"""Fixed-window counting.

One integer per (handle, key, window). The window index is part of the cache
key, so counters reset implicitly when the clock crosses a window boundary;
stale keys are left for the store to expire.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from throttlekit.adapters.storage.base import AbstractStore
from throttlekit.strategies.base import AbstractStrategy, StrategyName
from throttlekit.utils.cache_keys import build_cache_key

if TYPE_CHECKING:
    from throttlekit.core.options import ThrottleOptions


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class FixedWindowStrategy(AbstractStrategy):
    """Count occurrences per discrete time window."""

    name = StrategyName.FIXED_WINDOW

    def build_key(self, options: ThrottleOptions, now: float) -> str:
        return build_cache_key(
            options.handle, options.key, options.interval, now, prefix=self.key_prefix
        )

    def counter(self, store: AbstractStore, cache_key: str, options: ThrottleOptions, now: int) -> int:
        return _as_int(store.read(cache_key))

    def at_threshold(self, counter: int, options: ThrottleOptions) -> bool:
        return counter >= options.threshold

    def increment(
        self, store: AbstractStore, cache_key: str, options: ThrottleOptions, counter: int, now: int
    ) -> int:
        value = counter + self.step(options.increment)
        store.write(cache_key, value)
        return value

    def decrement(
        self, store: AbstractStore, cache_key: str, options: ThrottleOptions, counter: int, now: int
    ) -> int:
        value = max(0, counter - self.step(options.decrement))
        store.write(cache_key, value)
        return value

    def reset(self, store: AbstractStore, cache_key: str, options: ThrottleOptions, now: int) -> None:
        store.write(cache_key, 0)

    def count_value(self, counter: int) -> int:
        return counter

    def retry_after(self, counter: int, options: ThrottleOptions, now: int) -> int:
        # Seconds left in the current window
        return options.interval - (now % options.interval)
