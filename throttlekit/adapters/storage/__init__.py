"""Counter storage adapters.

The limiter only ever reads and writes through ``AbstractStore``, so the host
can back counters with a process-local dict, a shared cache, or its own
read/write functions without changing the throttling code.
"""

from throttlekit.adapters.storage.base import AbstractStore
from throttlekit.adapters.storage.callables import CallableStore
from throttlekit.adapters.storage.in_memory import InMemoryStore

__all__ = ["AbstractStore", "CallableStore", "InMemoryStore"]
