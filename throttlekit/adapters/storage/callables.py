"""Store backed by host-supplied read/write functions."""

from __future__ import annotations

from typing import Any, Callable

from throttlekit.adapters.storage.base import AbstractStore

Reader = Callable[[str], Any]
Writer = Callable[[str, Any], None]


class CallableStore(AbstractStore):
    """Delegate reads and writes to two host callables.

    Useful when the host already owns a cache client, e.g.::

        store = CallableStore(cache.get, cache.set)
    """

    def __init__(self, reader: Reader, writer: Writer) -> None:
        if not callable(reader) or not callable(writer):
            raise TypeError("reader and writer must be callable")
        self._reader = reader
        self._writer = writer

    def read(self, key: str) -> Any | None:
        return self._reader(key)

    def write(self, key: str, value: Any) -> None:
        self._writer(key, value)
