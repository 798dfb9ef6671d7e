"""Decide whether a node failure is absorbed or propagated.

Precedence is ``silence_error`` over ``on_error`` over propagation. An
``on_error`` hook that returns normally absorbs the failure; if the hook
raises, its exception propagates in place of the original one.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .callbacks import invoke

LOGGER = logging.getLogger(__name__)


async def contain(node: Any, error: BaseException, context: Any) -> Optional[BaseException]:
    """Return the exception that must propagate, or ``None`` if absorbed."""

    if node.silence_error:
        LOGGER.debug("Silenced failure of %s: %r", node.name, error)
        return None
    if node.on_error is None:
        return error
    try:
        await invoke(node.on_error, error, context)
    except Exception as hook_error:  # noqa: BLE001
        LOGGER.debug("on_error of %s raised %r", node.name, hook_error)
        return hook_error
    LOGGER.debug("on_error of %s handled %r", node.name, error)
    return None
