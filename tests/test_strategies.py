"""Unit tests for the fixed-window and leaky-bucket strategies."""

from unittest.mock import Mock

import pytest

from throttlekit.adapters.storage import InMemoryStore
from throttlekit.core.options import OptionResolver
from throttlekit.strategies import FixedWindowStrategy, LeakyBucketStrategy

NOW = 1_000_000


@pytest.fixture
def resolver() -> OptionResolver:
    resolver = OptionResolver()
    resolver.register("fixed", {"threshold": 3, "interval": 60})
    resolver.register(
        "bucket",
        {"threshold": 10, "interval": 1, "burst_rate": 100, "strategy": "leaky_bucket"},
    )
    return resolver


# Fixed window


def test_fixed_window_reads_missing_counter_as_zero(resolver: OptionResolver) -> None:
    opts = resolver.resolve("fixed")
    strategy = FixedWindowStrategy()

    assert strategy.counter(InMemoryStore(), "missing", opts, NOW) == 0


def test_fixed_window_threshold_comparison(resolver: OptionResolver) -> None:
    opts = resolver.resolve("fixed")
    strategy = FixedWindowStrategy()

    assert strategy.at_threshold(2, opts) is False
    assert strategy.at_threshold(3, opts) is True
    assert strategy.at_threshold(4, opts) is True


@pytest.mark.parametrize(("requested", "expected"), [(1, 3), (5, 7), (0, 3), (-4, 3)])
def test_fixed_window_increment_has_floor_of_one(
    resolver: OptionResolver, requested: int, expected: int
) -> None:
    opts = resolver.resolve("fixed", None, {"increment": requested})
    store = Mock()

    assert FixedWindowStrategy().increment(store, "ck", opts, 2, NOW) == expected
    store.write.assert_called_once_with("ck", expected)


def test_fixed_window_decrement_and_reset(resolver: OptionResolver) -> None:
    store = InMemoryStore()
    strategy = FixedWindowStrategy()

    opts = resolver.resolve("fixed", None, {"decrement": 5})
    assert strategy.decrement(store, "ck", opts, 2, NOW) == 0

    strategy.reset(store, "ck", opts, NOW)
    assert store.read("ck") == 0


def test_fixed_window_retry_after_is_rest_of_window(resolver: OptionResolver) -> None:
    opts = resolver.resolve("fixed")

    # NOW % 60 == 40
    assert FixedWindowStrategy().retry_after(3, opts, NOW) == 20


# Leaky bucket


def test_leaky_bucket_absent_state_is_empty(resolver: OptionResolver) -> None:
    opts = resolver.resolve("bucket")

    counter = LeakyBucketStrategy().counter(InMemoryStore(), "ck", opts, NOW)

    assert counter == {"bucket": 0, "last_updated": NOW}


@pytest.mark.parametrize(
    ("stored", "elapsed", "expected_level"),
    [
        (50, 5, 0),
        (50, 2, 30),
        (50, 0, 50),
        (5, 100, 0),
    ],
)
def test_leaky_bucket_drains_at_threshold_per_interval(
    resolver: OptionResolver, stored: int, elapsed: int, expected_level: int
) -> None:
    opts = resolver.resolve("bucket")
    store = InMemoryStore()
    store.write("ck", {"bucket": stored, "last_updated": NOW - elapsed})

    counter = LeakyBucketStrategy().counter(store, "ck", opts, NOW)

    assert counter == {"bucket": expected_level, "last_updated": NOW}
    # Reading never writes back the drain
    assert store.read("ck") == {"bucket": stored, "last_updated": NOW - elapsed}


def test_leaky_bucket_drain_floors_partial_units() -> None:
    resolver = OptionResolver()
    resolver.register("slow", {"threshold": 3, "interval": 10, "strategy": "leaky_bucket"})
    opts = resolver.resolve("slow")
    store = InMemoryStore()
    store.write("ck", {"bucket": 3, "last_updated": NOW - 5})

    # 5s * 3/10 = 1.5 units, floored to 1
    assert LeakyBucketStrategy().counter(store, "ck", opts, NOW)["bucket"] == 2


def test_leaky_bucket_capacity_is_burst_rate(resolver: OptionResolver) -> None:
    opts = resolver.resolve("bucket")
    strategy = LeakyBucketStrategy()

    assert strategy.at_threshold({"bucket": 99, "last_updated": NOW}, opts) is False
    assert strategy.at_threshold({"bucket": 100, "last_updated": NOW}, opts) is True


def test_leaky_bucket_capacity_falls_back_to_threshold() -> None:
    resolver = OptionResolver()
    resolver.register("plain", {"threshold": 4, "interval": 1, "strategy": "leaky_bucket"})
    opts = resolver.resolve("plain")

    assert LeakyBucketStrategy().at_threshold({"bucket": 4, "last_updated": NOW}, opts) is True


def test_leaky_bucket_increment_writes_new_state(resolver: OptionResolver) -> None:
    opts = resolver.resolve("bucket")
    store = InMemoryStore()
    counter = {"bucket": 99, "last_updated": NOW - 0}

    state = LeakyBucketStrategy().increment(store, "ck", opts, counter, NOW)

    assert state == {"bucket": 100, "last_updated": NOW}
    assert store.read("ck") == state
    assert counter == {"bucket": 99, "last_updated": NOW}


def test_leaky_bucket_reset_and_decrement(resolver: OptionResolver) -> None:
    store = InMemoryStore()
    strategy = LeakyBucketStrategy()
    opts = resolver.resolve("bucket", None, {"decrement": 3})

    assert strategy.decrement(store, "ck", opts, {"bucket": 5, "last_updated": NOW}, NOW) == {
        "bucket": 2,
        "last_updated": NOW,
    }

    strategy.reset(store, "ck", opts, NOW)
    assert store.read("ck") == {"bucket": 0, "last_updated": NOW}


def test_leaky_bucket_retry_after(resolver: OptionResolver) -> None:
    opts = resolver.resolve("bucket")
    strategy = LeakyBucketStrategy()

    # One unit over capacity drains in 1/10s, rounded up to a whole second
    assert strategy.retry_after({"bucket": 100, "last_updated": NOW}, opts, NOW) == 1
    assert strategy.retry_after({"bucket": 129, "last_updated": NOW}, opts, NOW) == 3
