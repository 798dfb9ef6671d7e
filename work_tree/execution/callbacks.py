"""Uniform invocation of user callbacks, sync or async."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Set

LOGGER = logging.getLogger(__name__)

EXEC_MODE_INLINE = "inline"
EXEC_MODE_THREAD = "thread"

_detached: Set["asyncio.Future[Any]"] = set()


async def invoke(callback: Callable[..., Any], *args: Any) -> Any:
    """Call ``callback`` and await the result if it is awaitable."""

    result = callback(*args)
    return await _maybe_await(result)


async def invoke_execute(execute: Callable[..., Any], context: Any, *, exec_mode: str = EXEC_MODE_INLINE) -> Any:
    if exec_mode == EXEC_MODE_THREAD and not _is_async_callable(execute):
        result = await asyncio.to_thread(execute, context)
        if inspect.isawaitable(result):
            LOGGER.warning("Threaded execute returned an awaitable; awaiting it on the event loop")
            return await result
        return result
    return await invoke(execute, context)


async def invoke_quietly(callback: Callable[..., Any], *args: Any, hook: str, node_name: str) -> None:
    """Invoke a hook whose failure must never affect the run."""

    try:
        await invoke(callback, *args)
    except Exception:  # noqa: BLE001
        LOGGER.warning("%s hook of %s raised; ignoring", hook, node_name, exc_info=True)


def detach(awaitable: Awaitable[Any], *, label: str) -> "asyncio.Future[Any]":
    """Keep ``awaitable`` running without awaiting it; its outcome is only logged."""

    future = asyncio.ensure_future(awaitable)
    _detached.add(future)

    def _done(fut: "asyncio.Future[Any]") -> None:
        _detached.discard(fut)
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            LOGGER.debug("Discarded error from detached %s: %r", label, exc)
        else:
            LOGGER.debug("Discarded late result from detached %s", label)

    future.add_done_callback(_done)
    return future


def fire_and_forget(
    callback: Optional[Callable[..., Any]], *args: Any, hook: str, node_name: str
) -> Optional["asyncio.Future[Any]"]:
    if callback is None:
        return None
    return detach(invoke_quietly(callback, *args, hook=hook, node_name=node_name), label=f"{hook} of {node_name}")


def detached_count() -> int:
    """Return the number of detached operations still running."""

    return len(_detached)


def _is_async_callable(target: Any) -> bool:
    if inspect.iscoroutinefunction(target):
        return True
    return inspect.iscoroutinefunction(getattr(target, "__call__", None))


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
