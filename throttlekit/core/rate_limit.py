"""Rate limiting dependency for FastAPI routes.

This module wires the limiter into the HTTP layer:
- ``get_limiter()`` returns a process-wide limiter built from settings.
- ``throttle_dependency()`` builds a route dependency that counts one call
  against a handle and lets ``RateLimitedError`` propagate; the handlers in
  ``throttlekit.core.exception_handlers`` turn it into a 429 response.

Request key (default): the client IP. Client-supplied headers such as
X-API-Key are not trusted here; a host that authenticates them can key on
them through ``key_func``.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi import Request

from throttlekit.core.config import settings
from throttlekit.services.limiter import Limiter

logger = logging.getLogger(__name__)

KeyFunc = Callable[[Request], Any]

_limiter: Limiter | None = None


def get_limiter() -> Limiter:
    """Return a process-wide limiter instance.

    The instance is cached in-module to preserve counters across requests.
    It is built once from ``settings.limiter`` (store, prefix, handles).
    """

    global _limiter

    if _limiter is None:
        _limiter = Limiter.from_settings(settings.limiter)
        logger.info(
            "limiter.created",
            extra={"handles": _limiter.handles, "enabled": _limiter.enabled},
        )
    return _limiter


def set_limiter(limiter: Limiter | None) -> None:
    """Replace (or clear, with None) the process-wide limiter."""

    global _limiter
    _limiter = limiter


def default_request_key(request: Request) -> str:
    """Build the request key for the current request from the client IP.

    Returns:
        str: Namespaced key, ``ip:<host>``.
    """

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def throttle_dependency(
    handle: str,
    *,
    key_func: KeyFunc | None = None,
    limiter: Limiter | None = None,
    **options: Any,
) -> Callable[[Request], Awaitable[None]]:
    """Create a FastAPI dependency enforcing ``handle`` on a route.

    Args:
        handle: Registered handle to count against.
        key_func: Maps the request to a request key (defaults to the client IP).
        limiter: Limiter to use; defaults to ``get_limiter()`` at call time.
        **options: Per-call overrides forwarded to ``throttle_or_raise``.

    Example:
        >>> @app.post("/login", dependencies=[Depends(throttle_dependency("login"))])
        ... async def login(): ...
    """

    build_key = key_func or default_request_key

    async def enforce_rate_limit(request: Request) -> None:
        active = limiter or get_limiter()
        active.throttle_or_raise(handle, build_key(request), **options)

    return enforce_rate_limit
