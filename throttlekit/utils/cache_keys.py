"""Cache key derivation for throttle counters.

Keys are hashed so arbitrary request keys (user ids, IPs, composite lists)
map to fixed-length, store-safe strings. The parts are JSON encoded before
hashing, which keeps ``["a/b"]`` and ``["a", "b"]`` from colliding.
"""

from __future__ import annotations

import json
from hashlib import sha256
from typing import Any

DEFAULT_PREFIX = "throttlekit"


def normalize_key(key: Any) -> Any:
    """Turn a request key into a JSON-serializable, order-preserving value.

    Args:
        key: None, a scalar, or a (possibly nested) list/tuple of scalars.

    Returns:
        "" for None, a list for sequences, str(value) for anything else.
    """

    if key is None:
        return ""
    if isinstance(key, (list, tuple)):
        return [normalize_key(part) for part in key]
    return str(key)


def window_index(now: float, interval: int) -> int:
    """Index of the fixed window containing ``now``."""
    return int(now // interval)


def _handle_part(handle: Any) -> str:
    # str subclasses (StrEnum members) already encode as their value
    return handle if isinstance(handle, str) else str(handle)


def _digest(*parts: Any) -> str:
    payload = json.dumps(list(parts), separators=(",", ":"), ensure_ascii=False)
    return sha256(payload.encode()).hexdigest()


def build_cache_key(
    handle: str,
    key: Any,
    interval: int,
    now: float,
    *,
    prefix: str = DEFAULT_PREFIX,
) -> str:
    """Build the fixed-window cache key for a handle/key pair.

    Every call within the same window maps to the same key; the first call of
    the next window lands on a fresh key whose counter reads as zero.

    Args:
        handle: Registered handle name.
        key: Optional request key.
        interval: Window length in seconds.
        now: Current UNIX time in seconds.
        prefix: Namespace for all keys of one limiter.

    Returns:
        ``"{prefix}/v2/{sha256 hex}"``.
    """

    digest = _digest(_handle_part(handle), normalize_key(key), window_index(now, interval))
    return f"{prefix}/v2/{digest}"


def build_bucket_key(handle: str, key: Any, *, prefix: str = DEFAULT_PREFIX) -> str:
    """Build the leaky-bucket cache key for a handle/key pair.

    Bucket state carries its own timestamp, so the key does not depend on time.
    """

    return f"{prefix}/leaky_bucket/{_digest(_handle_part(handle), normalize_key(key))}"
