"""Tests for limiter error types."""

import copy
import pickle

import pytest

from throttlekit.core.errors import ConfigurationError, RateLimitedError, UnknownHandleError


def _rate_limited() -> RateLimitedError:
    return RateLimitedError(
        handle="login",
        key=["acct-1", "10.0.0.7"],
        cache_key="throttlekit/v2/abc123",
        threshold=5,
        interval=60,
        retry_after=42,
        description="Login attempts",
        extras={"tier": "free"},
    )


@pytest.mark.parametrize("clone", [copy.copy, copy.deepcopy, lambda e: pickle.loads(pickle.dumps(e))])
def test_rate_limited_error_survives_copy_and_pickle(clone) -> None:
    original = _rate_limited()

    restored = clone(original)

    assert type(restored) is RateLimitedError
    assert str(restored) == str(original)
    assert restored.code == "rate_limited"
    assert restored.retry_after == 42
    assert restored.key == ["acct-1", "10.0.0.7"]
    assert restored.extras == {"tier": "free"}
    assert restored.details == original.details


def test_unknown_handle_error_survives_pickle() -> None:
    restored = pickle.loads(pickle.dumps(UnknownHandleError("nope")))

    assert isinstance(restored, UnknownHandleError)
    assert restored.handle == "nope"
    assert restored.message == "No such handle configured: 'nope'"


def test_configuration_error_survives_pickle() -> None:
    error = ConfigurationError(code="configuration_error", message="bad", details={"errors": []})

    restored = pickle.loads(pickle.dumps(error))

    assert restored.code == "configuration_error"
    assert restored.message == "bad"
    assert restored.details == {"errors": []}


def test_rate_limited_message_names_description_and_hash() -> None:
    assert str(_rate_limited()) == (
        "Login attempts threshold of 5 tries per 60s exceeded "
        "for key ['acct-1', '10.0.0.7'], hash throttlekit/v2/abc123"
    )
