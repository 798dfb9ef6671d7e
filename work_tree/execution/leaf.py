"""Execute one leaf work under its skip, retry, timeout and error policy."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from ..config import EngineSettings
from ..models import WorkResult, WorkStatus
from ..nodes import Work
from .callbacks import invoke, invoke_execute
from .containment import contain
from .context import WorkflowContext
from .outcome import Evaluation, NodeOutcome, discarded, outlived
from .retry import next_retry_delay
from .timeouts import guard, run_with_timeout

LOGGER = logging.getLogger(__name__)


def elapsed_ms(started: float) -> int:
    return int((asyncio.get_running_loop().time() - started) * 1000)


class LeafExecutor:
    """Runs a :class:`Work` and records exactly one result for it.

    Returns a :class:`NodeOutcome` when the work completed, was skipped, or
    its failure was absorbed; raises when the failure must propagate.
    """

    def __init__(self, settings: EngineSettings) -> None:
        self._settings = settings

    async def execute(
        self,
        work: Work,
        context: WorkflowContext,
        parent: Optional[str],
        scope: Optional[Evaluation] = None,
    ) -> NodeOutcome:
        started = asyncio.get_running_loop().time()
        registry = context.work_results

        if work.should_run is not None:
            try:
                should_run = await invoke(work.should_run, context)
            except Exception as exc:  # noqa: BLE001
                return await self._fail(work, context, parent, exc, started, attempts=1)
            if not should_run:
                LOGGER.debug("Skipping %s", work.name)
                registry.set(
                    work.name,
                    WorkResult(WorkStatus.SKIPPED, duration_ms=elapsed_ms(started), parent=parent, attempts=1),
                )
                if work.on_skipped is not None:
                    await invoke(work.on_skipped, context)
                return NodeOutcome(work.name, skipped=True)

        LOGGER.debug("Starting %s", work.name)
        evaluation = Evaluation(outer=scope)
        try:
            value = await guard(
                lambda: self._attempts(work, context, evaluation),
                work.timeout,
                name=work.name,
                context=context,
                on_expire=evaluation.abandon,
            )
        except Exception as exc:  # noqa: BLE001
            if outlived(scope):
                return discarded(work.name)
            return await self._fail(work, context, parent, exc, started, attempts=max(evaluation.attempts, 1))

        if outlived(scope):
            return discarded(work.name)
        registry.set(
            work.name,
            WorkResult(
                WorkStatus.COMPLETED,
                value=value,
                duration_ms=elapsed_ms(started),
                parent=parent,
                attempts=evaluation.attempts,
            ),
        )
        LOGGER.debug("Completed %s after %s attempt(s)", work.name, evaluation.attempts)
        return NodeOutcome(work.name, value=value)

    async def _attempts(self, work: Work, context: WorkflowContext, evaluation: Evaluation) -> Any:
        policy = work.retry
        while True:
            evaluation.attempts += 1
            attempt = evaluation.attempts
            try:
                return await self._attempt(work, context)
            except Exception as exc:  # noqa: BLE001
                if evaluation.abandoned:
                    raise
                delay = await next_retry_delay(policy, exc, attempt, context, name=work.name)
                if delay is None:
                    raise
                if delay > 0:
                    await asyncio.sleep(delay / 1000)
                if evaluation.abandoned:
                    raise

    async def _attempt(self, work: Work, context: WorkflowContext) -> Any:
        policy = work.retry
        if policy is None or policy.attempt_timeout is None:
            return await invoke_execute(work.execute, context, exec_mode=self._settings.sync_exec_mode)
        return await run_with_timeout(
            lambda: invoke_execute(work.execute, context, exec_mode=self._settings.sync_exec_mode),
            name=work.name,
            timeout_ms=policy.attempt_timeout,
        )

    async def _fail(
        self,
        work: Work,
        context: WorkflowContext,
        parent: Optional[str],
        error: BaseException,
        started: float,
        *,
        attempts: int,
    ) -> NodeOutcome:
        LOGGER.debug("%s failed after %s attempt(s): %r", work.name, attempts, error)
        context.work_results.set(
            work.name,
            WorkResult(
                WorkStatus.FAILED,
                error=error,
                duration_ms=elapsed_ms(started),
                parent=parent,
                attempts=attempts,
            ),
        )
        propagated = await contain(work, error, context)
        if propagated is not None:
            raise propagated
        return NodeOutcome(work.name, handled=True)
