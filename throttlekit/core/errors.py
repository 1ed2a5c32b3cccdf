"""Limiter-level exception types.

This module defines the errors raised across options, strategies and the
limiter, enabling consistent error handling, logging, and HTTP responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional so each error only carries what it knows.
    """

    code: str
    message: str
    hint: str
    handle: str
    key: Any
    cache_key: str
    threshold: int
    interval: int
    retry_after: int
    description: str
    errors: list[dict[str, Any]]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for limiter failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)

    def __reduce__(self) -> tuple[Any, ...]:
        # Exception pickling replays args, which only hold the message.
        return type(self), (self.code, self.message, self.details)


class ConfigurationError(AppError):
    """Raised when a handle configuration or call override is invalid."""


class UnknownHandleError(AppError):
    """Raised when throttling is attempted against an unregistered handle."""

    def __init__(self, handle: str) -> None:
        super().__init__(
            code="unknown_handle",
            message=f"No such handle configured: {handle!r}",
            details={"handle": handle, "hint": "Register the handle with Limiter.configure()"},
        )
        self.handle = handle

    def __reduce__(self) -> tuple[Any, ...]:
        return type(self), (self.handle,)


class RateLimitedError(AppError):
    """Raised by ``Limiter.throttle_or_raise`` when a handle/key hits its threshold.

    Not a bug condition: carries enough context for the host to build a
    user-facing response (e.g. HTTP 429 with ``Retry-After``).
    """

    def __init__(
        self,
        *,
        handle: str,
        key: Any,
        cache_key: str,
        threshold: int,
        interval: int,
        retry_after: int,
        description: str | None = None,
        extras: dict[str, Any] | None = None,
    ) -> None:
        label = description or handle
        message = (
            f"{label} threshold of {threshold} tries per {interval}s exceeded "
            f"for key {key!r}, hash {cache_key}"
        )
        details: ErrorDetails = {
            "handle": handle,
            "key": key,
            "cache_key": cache_key,
            "threshold": threshold,
            "interval": interval,
            "retry_after": retry_after,
        }
        if description:
            details["description"] = description
        if extras:
            details["context"] = dict(extras)

        super().__init__(code="rate_limited", message=message, details=details)
        self.handle = handle
        self.key = key
        self.cache_key = cache_key
        self.threshold = threshold
        self.interval = interval
        self.retry_after = retry_after
        self.description = description
        self.extras = dict(extras or {})

    def __reduce__(self) -> tuple[Any, ...]:
        rebuild = partial(
            type(self),
            handle=self.handle,
            key=self.key,
            cache_key=self.cache_key,
            threshold=self.threshold,
            interval=self.interval,
            retry_after=self.retry_after,
            description=self.description,
            extras=self.extras,
        )
        return rebuild, ()
