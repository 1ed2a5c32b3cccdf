"""Pluggable rate limiting: fixed-window counting and leaky-bucket smoothing
against a host-supplied key-value store."""

from throttlekit.adapters.storage import AbstractStore, CallableStore, InMemoryStore
from throttlekit.core.errors import AppError, ConfigurationError, RateLimitedError, UnknownHandleError
from throttlekit.core.options import HandleConfig, ThrottleOptions
from throttlekit.services.limiter import Limiter
from throttlekit.strategies import StrategyName

__version__ = "0.1.0"

__all__ = [
    "AbstractStore",
    "AppError",
    "CallableStore",
    "ConfigurationError",
    "HandleConfig",
    "InMemoryStore",
    "Limiter",
    "RateLimitedError",
    "StrategyName",
    "ThrottleOptions",
    "UnknownHandleError",
]
