"""Exception handlers rendering limiter errors as JSON HTTP responses.

Design:
- RateLimitedError → 429 Too Many Requests (+ Retry-After / X-RateLimit-*)
- ConfigurationError, UnknownHandleError → 500 (integration bug)
- Other AppError → 400
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from throttlekit.core.config import settings
from throttlekit.core.errors import AppError, ConfigurationError, RateLimitedError, UnknownHandleError
from throttlekit.core.logging import hash_key

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    error_content = {"code": code, "message": message}
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
    """Handle RateLimitedError with 429 and rate limit headers.

    The request key is never echoed back; clients get the handle, limits and
    retry hint only.
    """

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "handle": exc.handle,
            "key_hash": hash_key(exc.key),
            "threshold": exc.threshold,
            "interval_s": exc.interval,
            "retry_after_s": exc.retry_after,
            "request_path": request.url.path,
        },
    )

    headers: dict[str, str] = {}
    if settings.limiter.include_headers:
        headers["Retry-After"] = str(exc.retry_after)
        headers["X-RateLimit-Limit"] = str(exc.threshold)
        headers["X-RateLimit-Remaining"] = "0"

    return JSONResponse(
        status_code=429,
        content=_error_body(
            exc.code,
            "Rate limit exceeded. Try again later.",
            {
                "handle": exc.handle,
                "threshold": exc.threshold,
                "interval": exc.interval,
                "retry_after": exc.retry_after,
            },
        ),
        headers=headers or None,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle the remaining limiter errors with a consistent JSON format."""

    status_code = 400
    if isinstance(exc, (ConfigurationError, UnknownHandleError)):
        status_code = 500  # misconfigured integration, not the client's fault

    logger.error(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message),
    )


def setup_exception_handlers(app) -> None:
    """Register limiter exception handlers with a FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(RateLimitedError)(rate_limited_handler)
    app.exception_handler(AppError)(app_error_handler)
