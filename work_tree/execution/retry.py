"""Decide whether a failed attempt is retried and how long to wait."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..models import RetryPolicy
from .callbacks import invoke, invoke_quietly

LOGGER = logging.getLogger(__name__)


async def next_retry_delay(
    policy: Optional[RetryPolicy],
    error: BaseException,
    attempt: int,
    context: Any,
    *,
    name: str,
) -> Optional[float]:
    """Return the delay in milliseconds before the next attempt, or ``None`` to stop.

    ``attempt`` is the 1-indexed number of the attempt that just failed. The
    ``on_retry`` hook fires only when another attempt will follow; its errors
    are ignored. Errors raised by ``should_retry`` propagate to the caller.
    """

    if policy is None or attempt >= policy.max_attempts:
        return None
    if policy.should_retry is not None and not await invoke(policy.should_retry, error, attempt, context):
        LOGGER.debug("should_retry declined retry of %s after attempt %s", name, attempt)
        return None
    if policy.on_retry is not None:
        await invoke_quietly(policy.on_retry, error, attempt, context, hook="on_retry", node_name=name)
    delay = policy.delay_for(attempt)
    LOGGER.debug("Retrying %s after attempt %s/%s in %sms: %r", name, attempt, policy.max_attempts, delay, error)
    return delay
