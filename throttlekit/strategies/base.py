"""Counting strategy interface.

A strategy owns the shape of the counter stored for a handle/key pair, how
its cache key is derived, and how the counter is compared and advanced. The
limiter picks one strategy per call (during option resolution) and only talks
to it through this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any

from throttlekit.adapters.storage.base import AbstractStore
from throttlekit.utils.cache_keys import DEFAULT_PREFIX

if TYPE_CHECKING:
    from throttlekit.core.options import ThrottleOptions


class StrategyName(str, Enum):
    """Counting strategies a handle can be configured with."""

    FIXED_WINDOW = "fixed_window"
    LEAKY_BUCKET = "leaky_bucket"


class AbstractStrategy(ABC):
    """Interface for counting strategies."""

    name: StrategyName

    def __init__(self, *, key_prefix: str = DEFAULT_PREFIX) -> None:
        self.key_prefix = key_prefix

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key_prefix={self.key_prefix!r})"

    @abstractmethod
    def build_key(self, options: ThrottleOptions, now: float) -> str:
        """Derive the cache key for the handle/key pair in ``options``."""
        raise NotImplementedError

    @abstractmethod
    def counter(self, store: AbstractStore, cache_key: str, options: ThrottleOptions, now: int) -> Any:
        """Read the current counter without writing anything."""
        raise NotImplementedError

    @abstractmethod
    def at_threshold(self, counter: Any, options: ThrottleOptions) -> bool:
        """Whether a call against ``counter`` must be throttled."""
        raise NotImplementedError

    @abstractmethod
    def increment(
        self, store: AbstractStore, cache_key: str, options: ThrottleOptions, counter: Any, now: int
    ) -> Any:
        """Advance the counter by ``options.increment`` (at least 1) and return it."""
        raise NotImplementedError

    @abstractmethod
    def decrement(
        self, store: AbstractStore, cache_key: str, options: ThrottleOptions, counter: Any, now: int
    ) -> Any:
        """Give back ``options.decrement`` units (never below zero) and return the counter."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, store: AbstractStore, cache_key: str, options: ThrottleOptions, now: int) -> None:
        """Force the counter back to zero."""
        raise NotImplementedError

    @abstractmethod
    def count_value(self, counter: Any) -> int:
        """Integer usage represented by ``counter``."""
        raise NotImplementedError

    @abstractmethod
    def retry_after(self, counter: Any, options: ThrottleOptions, now: int) -> int:
        """Seconds until a throttled call could succeed."""
        raise NotImplementedError

    @staticmethod
    def step(amount: Any) -> int:
        """Clamp a requested increment to a floor of 1."""
        try:
            return max(1, int(amount))
        except (TypeError, ValueError):
            return 1
