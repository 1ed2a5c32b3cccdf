"""Counter store interface.

Strategies depend on this abstraction (not a concrete backend) so the host
can supply whatever key-value store it already runs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from typing import Any


class AbstractStore(ABC):
    """Interface for counter stores.

    Values are either a plain integer (fixed window) or a small dict
    ``{"bucket": int, "last_updated": int}`` (leaky bucket). Expiry, if any,
    is the store's business.
    """

    @abstractmethod
    def read(self, key: str) -> Any | None:
        """Return the value stored at ``key`` or None when absent."""
        raise NotImplementedError

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """Store ``value`` at ``key``, replacing any previous value."""
        raise NotImplementedError

    def lock(self, key: str) -> AbstractContextManager[Any]:
        """Return a context manager guarding a read-modify-write on ``key``.

        The default is a no-op: strategies then run read-then-write and
        concurrent callers may lose updates. Stores that can serialize access
        should override it.
        """
        return nullcontext()
