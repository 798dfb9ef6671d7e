"""Race an operation against a deadline without cancelling it.

Expiry stops the engine from waiting and raises :class:`WorkTimeoutError`.
The operation itself keeps running in the background and its eventual result
is discarded, so a timed-out network call still holds its connection until
it finishes on its own.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..errors import WorkTimeoutError
from ..models import TimeoutPolicy
from .callbacks import detach, fire_and_forget

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_timeout(
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    timeout_ms: Optional[float],
    on_timeout: Optional[Callable[..., Any]] = None,
    context: Any = None,
    on_expire: Optional[Callable[[], None]] = None,
) -> T:
    """Await ``operation()`` for at most ``timeout_ms`` milliseconds.

    ``on_expire`` runs synchronously when the deadline passes, before the
    error is raised; the engine uses it to mark the evaluation abandoned.
    ``on_timeout`` is the user hook and runs detached with ``context``.
    """

    if timeout_ms is None:
        return await operation()

    task = asyncio.ensure_future(operation())
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise
    if task in done:
        return task.result()

    LOGGER.warning("%s timed out after %sms; leaving the operation running", name, timeout_ms)
    if on_expire is not None:
        on_expire()
    detach(task, label=f"operation of {name}")
    fire_and_forget(on_timeout, context, hook="on_timeout", node_name=name)
    raise WorkTimeoutError(name, timeout_ms)


async def guard(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[TimeoutPolicy],
    *,
    name: str,
    context: Any,
    on_expire: Optional[Callable[[], None]] = None,
) -> T:
    """Apply a work or tree :class:`TimeoutPolicy` to ``operation``."""

    if policy is None:
        return await operation()
    return await run_with_timeout(
        operation,
        name=name,
        timeout_ms=policy.ms,
        on_timeout=policy.on_timeout,
        context=context,
        on_expire=on_expire,
    )
