"""Declare trees of serial and parallel work and run them against a payload."""

from .config import EngineSettings, get_settings
from .errors import (
    InvalidWorkError,
    ResultNotFoundError,
    SealedTreeError,
    WorkTimeoutError,
    WorkTreeError,
    ensure_exception,
)
from .execution import LeafExecutor, ResultRegistry, TreeExecutor, WorkflowContext, run_tree
from .log import configure_logging
from .models import (
    RetryPolicy,
    RunOutcome,
    TimeoutPolicy,
    WorkOutcome,
    WorkResult,
    WorkStatus,
    normalize_retry,
    normalize_timeout,
)
from .nodes import NodeKind, ParallelStep, SerialStep, StepKind, Tree, Work, as_node, tree

__version__ = "0.1.0"

__all__ = [
    "EngineSettings",
    "InvalidWorkError",
    "LeafExecutor",
    "NodeKind",
    "ParallelStep",
    "ResultNotFoundError",
    "ResultRegistry",
    "RetryPolicy",
    "RunOutcome",
    "SealedTreeError",
    "SerialStep",
    "StepKind",
    "TimeoutPolicy",
    "Tree",
    "TreeExecutor",
    "Work",
    "WorkOutcome",
    "WorkResult",
    "WorkStatus",
    "WorkTimeoutError",
    "WorkTreeError",
    "WorkflowContext",
    "as_node",
    "configure_logging",
    "ensure_exception",
    "get_settings",
    "normalize_retry",
    "normalize_timeout",
    "run_tree",
    "tree",
]
