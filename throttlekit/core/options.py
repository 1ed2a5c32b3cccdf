"""Handle configuration and per-call option resolution.

``HandleConfig`` holds the defaults registered once per handle. On every call
the resolver merges call-site overrides on top of them, re-validates the
result, and picks the counting strategy, producing a ``ThrottleOptions``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from throttlekit.core.errors import ConfigurationError, UnknownHandleError
from throttlekit.strategies import AbstractStrategy, StrategyName, build_strategies

logger = logging.getLogger(__name__)

# Fields that only make sense per call and are never part of a HandleConfig
CALL_FIELDS = ("increment", "decrement")


def normalize_strategy_name(value: Any) -> Any:
    """Accept ``"Leaky-Bucket"`` style spellings of a strategy name."""
    if isinstance(value, str):
        return value.strip().lower().replace("-", "_")
    return value


class HandleConfig(BaseModel):
    """Per-handle defaults.

    Unknown fields are kept (``model_extra``) and passed through to callers,
    e.g. into ``RateLimitedError.extras``.
    """

    threshold: int = Field(..., gt=0, description="Max allowed count per interval")
    interval: int = Field(..., gt=0, description="Window length / drain period in seconds")
    burst_rate: int | None = Field(None, gt=0, description="Leaky-bucket capacity")
    strategy: StrategyName = Field(StrategyName.FIXED_WINDOW, description="Counting strategy")
    description: str | None = Field(None, description="Human label used in throttling messages")

    model_config = ConfigDict(frozen=True, extra="allow")

    @field_validator("interval", mode="before")
    @classmethod
    def _interval_seconds(cls, value: Any) -> Any:
        if isinstance(value, timedelta):
            return int(value.total_seconds())
        return value

    @field_validator("strategy", mode="before")
    @classmethod
    def _strategy_name(cls, value: Any) -> Any:
        return normalize_strategy_name(value)

    @model_validator(mode="after")
    def _burst_covers_threshold(self) -> "HandleConfig":
        if self.burst_rate is not None and self.burst_rate < self.threshold:
            raise ValueError("burst_rate must be >= threshold")
        return self


@dataclass(frozen=True)
class ThrottleOptions:
    """Effective options for one call. Computed fresh per call, never stored."""

    handle: str
    key: Any
    threshold: int
    interval: int
    strategy: AbstractStrategy
    burst_rate: int | None = None
    increment: Any = 1
    decrement: Any = None
    description: str | None = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    @property
    def capacity(self) -> int:
        return self.burst_rate or self.threshold


def validate_config(data: Mapping[str, Any]) -> HandleConfig:
    """Validate raw handle settings, translating pydantic errors.

    Raises:
        ConfigurationError: If threshold/interval are not positive or any
            other field is malformed.
    """

    try:
        return HandleConfig.model_validate(dict(data))
    except ValidationError as exc:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors(include_url=False, include_context=False, include_input=False)
        ]
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "config" for err in errors)
        raise ConfigurationError(
            code="configuration_error",
            message=f"Invalid handle settings: {fields}",
            details={"errors": errors},
        ) from exc


class OptionResolver:
    """Registry of handle defaults and per-call option merging."""

    def __init__(
        self,
        strategies: Mapping[StrategyName, AbstractStrategy] | None = None,
        *,
        default_strategy: StrategyName | str = StrategyName.FIXED_WINDOW,
    ) -> None:
        self._strategies = dict(strategies or build_strategies())
        try:
            self._default_strategy = StrategyName(normalize_strategy_name(default_strategy))
        except ValueError:
            raise ConfigurationError(
                code="configuration_error",
                message=f"Unknown default strategy: {default_strategy!r}",
                details={"hint": f"Use one of: {', '.join(s.value for s in StrategyName)}"},
            ) from None
        self._handles: dict[str, HandleConfig] = {}

    def register(self, handle: str, config: HandleConfig | Mapping[str, Any]) -> HandleConfig:
        """Register (or replace) the defaults for ``handle``."""

        if not isinstance(handle, str):
            raise ConfigurationError(
                code="configuration_error",
                message=f"Handle must be a string, got {type(handle).__name__}",
                details={"hint": "Pass the handle name, e.g. Handles.LOGIN.value"},
            )
        if isinstance(config, HandleConfig):
            data = config.model_dump(exclude_unset=True)
        else:
            data = dict(config)
        data.setdefault("strategy", self._default_strategy)

        validated = validate_config(data)
        self._handles[handle] = validated

        logger.debug(
            "handle.configured",
            extra={
                "handle": handle,
                "threshold": validated.threshold,
                "interval": validated.interval,
                "strategy": validated.strategy.value,
            },
        )
        return validated

    def handles(self) -> list[str]:
        return list(self._handles)

    def get(self, handle: str) -> HandleConfig:
        try:
            return self._handles[handle]
        except KeyError:
            raise UnknownHandleError(handle) from None

    def resolve(self, handle: str, key: Any = None, overrides: Mapping[str, Any] | None = None) -> ThrottleOptions:
        """Merge call overrides over the handle defaults.

        Args:
            handle: Registered handle name.
            key: Optional request key.
            overrides: Call-site options; they win on collision.

        Returns:
            ThrottleOptions with the strategy instance already selected.

        Raises:
            UnknownHandleError: If ``handle`` was never registered.
            ConfigurationError: If the merged settings are invalid.
        """

        defaults = self.get(handle)
        call = dict(overrides or {})
        call_fields = {name: call.pop(name) for name in CALL_FIELDS if name in call}
        call.pop("key", None)

        # model_dump() includes extra (pass-through) fields
        merged = defaults if not call else validate_config({**defaults.model_dump(), **call})

        return ThrottleOptions(
            handle=handle,
            key=key,
            threshold=merged.threshold,
            interval=merged.interval,
            strategy=self._strategies[merged.strategy],
            burst_rate=merged.burst_rate,
            increment=call_fields.get("increment", 1),
            decrement=call_fields.get("decrement"),
            description=merged.description,
            extras=dict(merged.model_extra or {}),
        )
