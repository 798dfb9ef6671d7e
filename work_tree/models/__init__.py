"""Policy and result models shared by the builder and the executors."""

from .policies import (
    DEFAULT_BACKOFF_MULTIPLIER,
    RetryConfig,
    RetryPolicy,
    TimeoutConfig,
    TimeoutPolicy,
    normalize_retry,
    normalize_timeout,
)
from .results import RunOutcome, WorkOutcome, WorkResult, WorkStatus

__all__ = [
    "DEFAULT_BACKOFF_MULTIPLIER",
    "RetryConfig",
    "RetryPolicy",
    "RunOutcome",
    "TimeoutConfig",
    "TimeoutPolicy",
    "WorkOutcome",
    "WorkResult",
    "WorkStatus",
    "normalize_retry",
    "normalize_timeout",
]
