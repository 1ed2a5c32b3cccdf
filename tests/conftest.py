"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so no .env file is loaded, and pins limiter defaults.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("THROTTLE_ENABLED", "true")
os.environ.setdefault("THROTTLE_KEY_PREFIX", "throttlekit")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest  # noqa: E402

from throttlekit.adapters.storage import InMemoryStore  # noqa: E402
from throttlekit.services.limiter import Limiter  # noqa: E402


class FakeClock:
    """Deterministic clock used to test window and drain logic."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def limiter(store: InMemoryStore, clock: FakeClock) -> Limiter:
    return Limiter(store, clock=clock, enabled=True)
