"""Entry point that runs a tree once against a data payload."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from ..config import EngineSettings, get_settings
from ..errors import WorkTimeoutError
from ..models import RunOutcome, WorkOutcome, WorkResult, WorkStatus
from ..nodes import Tree
from .callbacks import invoke_quietly
from .context import WorkflowContext
from .leaf import elapsed_ms
from .outcome import Evaluation
from .registry import ResultRegistry
from .timeouts import guard
from .tree import TreeExecutor

LOGGER = logging.getLogger(__name__)


async def run_tree(tree: Tree, data: Any = None, *, settings: Optional[EngineSettings] = None) -> RunOutcome:
    """Execute ``tree`` with a fresh :class:`ResultRegistry`.

    The tree's own timeout bounds the whole run and is never contained by
    ``silence_error`` or ``on_error``. When it expires after the root already
    recorded its result, that entry is kept and ``on_after`` is not called
    again; the run still fails. The registry is closed when this
    returns; operations still running in the background cannot modify it.
    """

    settings = settings or get_settings()
    registry = ResultRegistry()
    context = WorkflowContext(data=data, work_results=registry)
    executor = TreeExecutor(settings)
    run_scope = Evaluation()
    root_scope = Evaluation(outer=run_scope)
    started = asyncio.get_running_loop().time()
    duplicates = tree.duplicate_names()
    if duplicates:
        LOGGER.debug("Tree %s reuses names %s; later results overwrite earlier ones", tree.name, duplicates)

    LOGGER.info("Running tree %s", tree.name)
    error: Optional[BaseException] = None
    try:
        outcome = await guard(
            lambda: executor.execute(tree, context, None, run_scope, apply_timeout=False, evaluation=root_scope),
            tree.timeout,
            name=tree.name,
            context=context,
            on_expire=run_scope.abandon,
        )
        error = outcome.error
    except WorkTimeoutError as exc:
        error = exc
        if root_scope.settled:
            LOGGER.debug("Tree %s timed out after recording its result; keeping that entry", tree.name)
        else:
            registry.set(tree.name, WorkResult(WorkStatus.FAILED, error=exc, duration_ms=elapsed_ms(started)))
            if tree.on_after is not None:
                await invoke_quietly(
                    tree.on_after,
                    context,
                    WorkOutcome(WorkStatus.FAILED, registry, error=exc),
                    hook="on_after",
                    node_name=tree.name,
                )
    except Exception as exc:  # noqa: BLE001
        error = exc
    finally:
        registry.close()

    total_duration_ms = elapsed_ms(started)
    if error is not None:
        LOGGER.warning("Tree %s failed after %sms: %r", tree.name, total_duration_ms, error)
        status = WorkStatus.FAILED
    else:
        LOGGER.info("Tree %s completed in %sms", tree.name, total_duration_ms)
        status = WorkStatus.COMPLETED
    return RunOutcome(
        status=status,
        total_duration_ms=total_duration_ms,
        work_results=registry,
        context=context,
        error=error,
    )
