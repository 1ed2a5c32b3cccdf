"""Service layer: the limiter orchestrating strategies against a store."""

from throttlekit.services.limiter import Limiter

__all__ = ["Limiter"]
