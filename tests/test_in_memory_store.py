"""Unit tests for the in-memory counter store."""

import threading

import pytest

from throttlekit.adapters.storage import CallableStore, InMemoryStore


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def test_read_missing_returns_none() -> None:
    assert InMemoryStore().read("missing") is None


def test_write_then_read() -> None:
    store = InMemoryStore()
    store.write("a", 3)
    store.write("b", {"bucket": 1, "last_updated": 10})

    assert store.read("a") == 3
    assert store.read("b") == {"bucket": 1, "last_updated": 10}


def test_expired_entry_is_evicted() -> None:
    fake_time = FakeTime()
    store = InMemoryStore(ttl_seconds=5, clock=fake_time)
    store.write("key", 1)

    fake_time.advance(4)
    assert store.read("key") == 1

    fake_time.advance(2)
    assert store.read("key") is None
    assert store.stats()["evictions"] == 1


def test_lru_eviction_removes_least_recently_used() -> None:
    store = InMemoryStore(max_entries=2)
    store.write("a", 1)
    store.write("b", 2)

    # Access "a" so that "b" becomes least recently used
    assert store.read("a") == 1

    store.write("c", 3)

    assert store.read("a") == 1
    assert store.read("c") == 3
    assert store.read("b") is None


def test_clear_resets_state() -> None:
    store = InMemoryStore(max_entries=1)
    store.write("a", 1)
    store.write("b", 2)

    store.clear()

    stats = store.stats()
    assert stats["entries"] == 0
    assert stats["evictions"] == 0


@pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryStore(**kwargs)


def test_lock_serializes_read_modify_write() -> None:
    store = InMemoryStore()
    store.write("counter", 0)
    per_thread = 200

    def _incrementer() -> None:
        for _ in range(per_thread):
            with store.lock("counter"):
                store.write("counter", store.read("counter") + 1)

    threads = [threading.Thread(target=_incrementer) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.read("counter") == 8 * per_thread


def test_callable_store_delegates() -> None:
    data: dict = {}
    store = CallableStore(data.get, data.__setitem__)

    store.write("k", 5)

    assert data == {"k": 5}
    assert store.read("k") == 5
    with store.lock("k"):
        assert store.read("missing") is None


def test_callable_store_rejects_non_callables() -> None:
    with pytest.raises(TypeError):
        CallableStore({}, {}.__setitem__)  # type: ignore[arg-type]
