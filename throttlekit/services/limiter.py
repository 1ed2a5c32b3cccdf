"""Limiter orchestrating option resolution, cache keys and counting strategies.

Typical use::

    limiter = Limiter(InMemoryStore())
    limiter.configure("login_attempt", threshold=5, interval=300)

    limiter.throttle_or_raise("login_attempt", [account.id, client_ip])

``throttle`` returns a boolean signal; ``throttle_or_raise`` raises
``RateLimitedError`` instead, so callers can pick either style.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, TypeVar

from throttlekit.adapters.storage.base import AbstractStore
from throttlekit.core.config import LimiterSettings, settings
from throttlekit.core.errors import RateLimitedError
from throttlekit.core.logging import hash_key
from throttlekit.core.options import HandleConfig, OptionResolver, ThrottleOptions
from throttlekit.strategies import build_strategies

logger = logging.getLogger(__name__)

T = TypeVar("T")
BeforeThrottle = Callable[[str, Any, int, int], Any]


class Limiter:
    """Public throttling API.

    Args:
        store: Counter store (host-supplied).
        clock: Time source returning UNIX time in seconds.
        key_prefix: Namespace prepended to every cache key.
        default_strategy: Strategy for handles that do not name one.
        enabled: Global switch; a disabled limiter never throttles.
    """

    def __init__(
        self,
        store: AbstractStore,
        *,
        clock: Callable[[], float] = time.time,
        key_prefix: str | None = None,
        default_strategy: str | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.store = store
        self._clock = clock
        self.enabled = settings.limiter.enabled if enabled is None else enabled
        self._resolver = OptionResolver(
            build_strategies(key_prefix or settings.limiter.key_prefix),
            default_strategy=default_strategy or settings.limiter.default_strategy,
        )
        self._before_throttle: list[BeforeThrottle] = []
        # One flag per limiter, scoped per thread/task
        self._disabled_var: ContextVar[bool] = ContextVar(
            f"throttlekit_disabled_{id(self)}", default=False
        )

    @classmethod
    def from_settings(
        cls,
        limiter_settings: LimiterSettings | None = None,
        store: AbstractStore | None = None,
        **kwargs: Any,
    ) -> "Limiter":
        """Build a limiter and register every handle declared in settings."""

        from throttlekit.adapters.storage.in_memory import InMemoryStore

        cfg = limiter_settings or settings.limiter
        if store is None:
            store = InMemoryStore(ttl_seconds=cfg.store_ttl_seconds, max_entries=cfg.store_max_entries)

        limiter = cls(
            store,
            key_prefix=cfg.key_prefix,
            default_strategy=cfg.default_strategy,
            enabled=cfg.enabled,
            **kwargs,
        )
        for handle, defaults in cfg.handles.items():
            limiter.configure(handle, **defaults)
        return limiter

    # Registration

    def configure(self, handle: str, **defaults: Any) -> HandleConfig:
        """Register a handle, e.g. ``configure("login", threshold=5, interval=300)``.

        Raises:
            ConfigurationError: If threshold or interval are not positive, or
                burst_rate is below threshold.
        """
        return self._resolver.register(handle, defaults)

    @property
    def handles(self) -> list[str]:
        return self._resolver.handles()

    def before_throttle(self, callback: BeforeThrottle) -> BeforeThrottle:
        """Register a hook fired as ``callback(handle, key, threshold, interval)``.

        Hooks run synchronously, in registration order, once per throttled
        outcome. An exception raised by a hook propagates to the caller and
        skips the remaining hooks. Returns the callback so it can be used as
        a decorator.
        """
        self._before_throttle.append(callback)
        return callback

    # Disabled scope

    @property
    def is_disabled(self) -> bool:
        return not self.enabled or self._disabled_var.get()

    @contextmanager
    def disabled(self) -> Iterator[None]:
        """Run a block of code within which nothing is throttled or counted."""

        token = self._disabled_var.set(True)
        try:
            yield
        finally:
            self._disabled_var.reset(token)

    # Throttling

    def throttle(
        self,
        handle: str,
        key: Any = None,
        func: Callable[[], T] | None = None,
        **options: Any,
    ) -> bool | T | None:
        """Record one action for the handle/key pair.

        Args:
            handle: Registered handle.
            key: Optional request key, e.g. ``[account.id, "download", ip]``.
            func: Optional callable run only when the call is not throttled.
            **options: Per-call overrides (``increment``, ``decrement``,
                ``threshold``, ...); unknown fields pass through.

        Returns:
            None when disabled, True when throttled, otherwise False or the
            return value of ``func``.
        """

        opts = self._resolver.resolve(handle, key, options)
        if self.is_disabled:
            return None

        throttled, _, _, _ = self._check_and_count(opts)
        if throttled:
            return True
        return func() if func is not None else False

    def throttle_or_raise(
        self,
        handle: str,
        key: Any = None,
        func: Callable[[], T] | None = None,
        **options: Any,
    ) -> Any:
        """Record one action, raising when the threshold has been reached.

        Returns:
            The return value of ``func`` when given, otherwise the counter
            after the increment (an int for fixed windows, the bucket dict for
            leaky buckets). When disabled, the current counter is returned
            unchanged.

        Raises:
            RateLimitedError: If the handle/key pair is throttled.
        """

        opts = self._resolver.resolve(handle, key, options)
        if self.is_disabled:
            if func is not None:
                return func()
            now = self._now()
            return opts.strategy.counter(self.store, opts.strategy.build_key(opts, now), opts, now)

        throttled, cache_key, counter, now = self._check_and_count(opts)
        if throttled:
            raise RateLimitedError(
                handle=handle,
                key=key,
                cache_key=cache_key,
                threshold=opts.threshold,
                interval=opts.interval,
                retry_after=opts.strategy.retry_after(counter, opts, now),
                description=opts.description,
                extras=dict(opts.extras),
            )
        return func() if func is not None else counter

    def throttled(self, handle: str, key: Any = None, **options: Any) -> bool:
        """Whether a ``throttle_or_raise`` with the same arguments would raise. Read-only."""

        opts = self._resolver.resolve(handle, key, options)
        strategy = opts.strategy
        now = self._now()
        counter = strategy.counter(self.store, strategy.build_key(opts, now), opts, now)
        return strategy.at_threshold(counter, opts)

    def count(self, handle: str, key: Any = None, **options: Any) -> int:
        """Current usage for the handle/key pair. Read-only."""

        opts = self._resolver.resolve(handle, key, options)
        strategy = opts.strategy
        now = self._now()
        counter = strategy.counter(self.store, strategy.build_key(opts, now), opts, now)
        return strategy.count_value(counter)

    query = count

    def reset(self, handle: str, key: Any = None, **options: Any) -> None:
        """Force the counter for the handle/key pair back to zero."""

        opts = self._resolver.resolve(handle, key, options)
        now = self._now()
        cache_key = opts.strategy.build_key(opts, now)
        with self.store.lock(cache_key):
            opts.strategy.reset(self.store, cache_key, opts, now)

        logger.info(
            "throttle.reset",
            extra={"handle": handle, "key_hash": hash_key(key), "cache_key": cache_key[-16:]},
        )

    # Internals

    def _now(self) -> int:
        return int(self._clock())

    def _check_and_count(self, opts: ThrottleOptions) -> tuple[bool, str, Any, int]:
        strategy = opts.strategy
        now = self._now()
        cache_key = strategy.build_key(opts, now)

        with self.store.lock(cache_key):
            counter = strategy.counter(self.store, cache_key, opts, now)

            if opts.decrement:
                counter = strategy.decrement(self.store, cache_key, opts, counter, now)
                return False, cache_key, counter, now

            if strategy.at_threshold(counter, opts):
                throttled = True
            else:
                counter = strategy.increment(self.store, cache_key, opts, counter, now)
                throttled = False

        if throttled:
            logger.warning(
                "throttle.exceeded",
                extra={
                    "handle": opts.handle,
                    "key_hash": hash_key(opts.key),
                    "strategy": strategy.name.value,
                    "threshold": opts.threshold,
                    "interval_s": opts.interval,
                    "count": strategy.count_value(counter),
                },
            )
            for callback in self._before_throttle:
                callback(opts.handle, opts.key, opts.threshold, opts.interval)
        else:
            logger.debug(
                "throttle.allowed",
                extra={
                    "handle": opts.handle,
                    "key_hash": hash_key(opts.key),
                    "strategy": strategy.name.value,
                    "count": strategy.count_value(counter),
                },
            )

        return throttled, cache_key, counter, now
