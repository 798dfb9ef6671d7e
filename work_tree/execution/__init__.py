"""Tree execution engine: registry, policies in motion, and executors."""

from .callbacks import detached_count, invoke
from .context import WorkflowContext
from .leaf import LeafExecutor
from .outcome import NodeOutcome
from .registry import ResultRegistry
from .retry import next_retry_delay
from .runner import run_tree
from .timeouts import guard, run_with_timeout
from .tree import TreeExecutor

__all__ = [
    "LeafExecutor",
    "NodeOutcome",
    "ResultRegistry",
    "TreeExecutor",
    "WorkflowContext",
    "detached_count",
    "guard",
    "invoke",
    "next_retry_delay",
    "run_tree",
    "run_with_timeout",
]
