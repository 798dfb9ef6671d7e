"""Recursive executor for trees of serial and parallel steps."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

from ..config import EngineSettings
from ..models import WorkOutcome, WorkResult, WorkStatus
from ..nodes import Node, NodeKind, StepKind, Tree
from .callbacks import invoke, invoke_quietly
from .containment import contain
from .context import WorkflowContext
from .leaf import LeafExecutor, elapsed_ms
from .outcome import Evaluation, NodeOutcome, discarded, outlived
from .timeouts import guard

LOGGER = logging.getLogger(__name__)


class TreeExecutor:
    """Walks a tree, delegating leaves to :class:`LeafExecutor`.

    A tree's value is the value of its last step: the node's value for a
    serial step, or a name -> value mapping of the nodes that completed for
    a parallel step.
    """

    def __init__(self, settings: EngineSettings, leaf_executor: Optional[LeafExecutor] = None) -> None:
        self._settings = settings
        self._leaf = leaf_executor or LeafExecutor(settings)

    async def execute(
        self,
        tree: Tree,
        context: WorkflowContext,
        parent: Optional[str] = None,
        scope: Optional[Evaluation] = None,
        *,
        apply_timeout: bool = True,
        evaluation: Optional[Evaluation] = None,
    ) -> NodeOutcome:
        """Evaluate ``tree`` and record its result.

        ``scope`` is the evaluation of the enclosing tree (or of the whole run
        for the root); once it is abandoned this tree stops starting steps and
        discards whatever it finishes with. ``evaluation`` lets the caller
        observe whether the tree settled its own result.
        """

        started = asyncio.get_running_loop().time()
        registry = context.work_results
        body = evaluation or Evaluation(outer=scope)

        if tree.should_run is not None:
            try:
                should_run = await invoke(tree.should_run, context)
            except Exception as exc:  # noqa: BLE001
                body.settle()
                registry.set(
                    tree.name,
                    WorkResult(WorkStatus.FAILED, error=exc, duration_ms=elapsed_ms(started), parent=parent),
                )
                return await self._settle(tree, exc, context)
            if not should_run:
                LOGGER.debug("Skipping tree %s", tree.name)
                body.settle()
                registry.set(
                    tree.name,
                    WorkResult(WorkStatus.SKIPPED, duration_ms=elapsed_ms(started), parent=parent, attempts=1),
                )
                if tree.on_skipped is not None:
                    await invoke(tree.on_skipped, context)
                return NodeOutcome(tree.name, skipped=True)

        LOGGER.debug("Starting tree %s (%s steps)", tree.name, len(tree.steps))
        try:
            value = await guard(
                lambda: self._run_body(tree, context, body),
                tree.timeout if apply_timeout else None,
                name=tree.name,
                context=context,
                on_expire=body.abandon,
            )
        except Exception as exc:  # noqa: BLE001
            if outlived(scope):
                return discarded(tree.name)
            body.settle()
            registry.set(
                tree.name,
                WorkResult(WorkStatus.FAILED, error=exc, duration_ms=elapsed_ms(started), parent=parent),
            )
            await self._after(tree, context, WorkOutcome(WorkStatus.FAILED, registry, error=exc))
            return await self._settle(tree, exc, context)

        if outlived(scope):
            return discarded(tree.name)
        body.settle()
        registry.set(
            tree.name,
            WorkResult(WorkStatus.COMPLETED, value=value, duration_ms=elapsed_ms(started), parent=parent),
        )
        await self._after(tree, context, WorkOutcome(WorkStatus.COMPLETED, registry, value=value))
        LOGGER.debug("Completed tree %s", tree.name)
        return NodeOutcome(tree.name, value=value)

    async def evaluate(
        self, node: Node, context: WorkflowContext, parent: str, scope: Optional[Evaluation] = None
    ) -> NodeOutcome:
        """Run any node and report a propagating failure as ``NodeOutcome.error``."""

        try:
            if node.kind is NodeKind.TREE:
                return await self.execute(node, context, parent, scope)
            return await self._leaf.execute(node, context, parent, scope)
        except Exception as exc:  # noqa: BLE001
            return NodeOutcome(node.name, error=exc)

    async def _run_body(self, tree: Tree, context: WorkflowContext, body: Evaluation) -> Any:
        if tree.on_before is not None:
            await invoke(tree.on_before, context)
        value: Any = None
        for step in tree.steps:
            if body.abandoned:
                LOGGER.debug("Tree %s was abandoned; not starting remaining steps", tree.name)
                break
            if step.kind is StepKind.SERIAL:
                value = await self._run_serial(tree, step.node, context, body)
            else:
                value = await self._run_parallel(tree, step.nodes, context, body)
        return value

    async def _run_serial(self, tree: Tree, node: Node, context: WorkflowContext, body: Evaluation) -> Any:
        outcome = await self.evaluate(node, context, tree.name, body)
        if outcome.error is not None:
            raise outcome.error
        return outcome.value

    async def _run_parallel(
        self, tree: Tree, nodes: Sequence[Node], context: WorkflowContext, body: Evaluation
    ) -> Dict[str, Any]:
        outcomes = await asyncio.gather(*(self.evaluate(node, context, tree.name, body) for node in nodes))
        values: Dict[str, Any] = {}
        errors = []
        for outcome in outcomes:
            if outcome.error is not None:
                errors.append(outcome.error)
            elif outcome.completed:
                values[outcome.name] = outcome.value
        if errors:
            if self._fail_fast(tree):
                raise errors[0]
            LOGGER.warning(
                "%s of %s parallel nodes in %s failed; continuing (fail_fast disabled)",
                len(errors),
                len(outcomes),
                tree.name,
            )
        return values

    def _fail_fast(self, tree: Tree) -> bool:
        if tree.fail_fast is None:
            return self._settings.fail_fast_default
        return tree.fail_fast

    async def _after(self, tree: Tree, context: WorkflowContext, outcome: WorkOutcome) -> None:
        if tree.on_after is not None:
            await invoke_quietly(tree.on_after, context, outcome, hook="on_after", node_name=tree.name)

    async def _settle(self, tree: Tree, error: BaseException, context: WorkflowContext) -> NodeOutcome:
        propagated = await contain(tree, error, context)
        if propagated is None:
            return NodeOutcome(tree.name, handled=True)
        return NodeOutcome(tree.name, error=propagated)
