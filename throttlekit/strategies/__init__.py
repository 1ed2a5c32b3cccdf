"""Counting strategies: fixed-window counting and leaky-bucket smoothing."""

from throttlekit.strategies.base import AbstractStrategy, StrategyName
from throttlekit.strategies.fixed_window import FixedWindowStrategy
from throttlekit.strategies.leaky_bucket import LeakyBucketStrategy
from throttlekit.utils.cache_keys import DEFAULT_PREFIX


def build_strategies(key_prefix: str = DEFAULT_PREFIX) -> dict[StrategyName, AbstractStrategy]:
    """Instantiate one strategy per ``StrategyName`` sharing a key prefix."""
    return {
        StrategyName.FIXED_WINDOW: FixedWindowStrategy(key_prefix=key_prefix),
        StrategyName.LEAKY_BUCKET: LeakyBucketStrategy(key_prefix=key_prefix),
    }


__all__ = [
    "AbstractStrategy",
    "FixedWindowStrategy",
    "LeakyBucketStrategy",
    "StrategyName",
    "build_strategies",
]
