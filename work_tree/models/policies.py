"""Retry and timeout policy models."""

from __future__ import annotations

import math
from typing import Any, Callable, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt, PositiveFloat

DEFAULT_BACKOFF_MULTIPLIER = 2.0


class RetryPolicy(BaseModel):
    """Retry behaviour for a leaf work.

    ``delay``, ``max_delay`` and ``attempt_timeout`` are milliseconds. Attempt
    numbers passed to :meth:`delay_for`, ``should_retry`` and ``on_retry`` are
    1-indexed against the first failed attempt.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    max_retries: NonNegativeInt
    delay: NonNegativeFloat = 0
    backoff: Literal["fixed", "exponential"] = "fixed"
    backoff_multiplier: PositiveFloat = DEFAULT_BACKOFF_MULTIPLIER
    max_delay: NonNegativeFloat = math.inf
    attempt_timeout: Optional[PositiveFloat] = None
    should_retry: Optional[Callable[..., Any]] = Field(default=None, repr=False)
    on_retry: Optional[Callable[..., Any]] = Field(default=None, repr=False)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Milliseconds to wait after failed attempt number ``attempt``."""

        if self.delay == 0:
            return 0
        if self.backoff == "exponential":
            try:
                delay = self.delay * math.pow(self.backoff_multiplier, attempt - 1)
            except OverflowError:
                delay = math.inf
        else:
            delay = self.delay
        return min(delay, self.max_delay)


class TimeoutPolicy(BaseModel):
    """Time budget in milliseconds with an optional expiry callback."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    ms: PositiveFloat
    on_timeout: Optional[Callable[..., Any]] = Field(default=None, repr=False)


RetryConfig = Union[int, Mapping[str, Any], RetryPolicy, None]
TimeoutConfig = Union[int, float, Mapping[str, Any], TimeoutPolicy, None]


def normalize_retry(retry: RetryConfig) -> Optional[RetryPolicy]:
    """Normalize a bare retry count or mapping into a :class:`RetryPolicy`."""

    if retry is None:
        return None
    if isinstance(retry, RetryPolicy):
        return retry
    if isinstance(retry, bool):
        raise TypeError("retry must be an int, a mapping or a RetryPolicy, not bool")
    if isinstance(retry, int):
        return RetryPolicy(max_retries=retry)
    if isinstance(retry, Mapping):
        return RetryPolicy.model_validate(dict(retry))
    raise TypeError(f"Unsupported retry configuration: {retry!r}")


def normalize_timeout(timeout: TimeoutConfig) -> Optional[TimeoutPolicy]:
    """Normalize a bare millisecond budget or mapping into a :class:`TimeoutPolicy`."""

    if timeout is None:
        return None
    if isinstance(timeout, TimeoutPolicy):
        return timeout
    if isinstance(timeout, bool):
        raise TypeError("timeout must be a number, a mapping or a TimeoutPolicy, not bool")
    if isinstance(timeout, (int, float)):
        return TimeoutPolicy(ms=timeout)
    if isinstance(timeout, Mapping):
        return TimeoutPolicy.model_validate(dict(timeout))
    raise TypeError(f"Unsupported timeout configuration: {timeout!r}")
