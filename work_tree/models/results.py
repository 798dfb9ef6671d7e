"""Result records produced by a tree run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:  # pragma: no cover
    from ..execution.context import WorkflowContext
    from ..execution.registry import ResultRegistry


class WorkStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class WorkResult:
    """Outcome of one evaluated work or tree."""

    status: WorkStatus
    value: Any = None
    error: Optional[BaseException] = None
    duration_ms: int = 0
    parent: Optional[str] = None
    attempts: int = 1

    @property
    def completed(self) -> bool:
        return self.status is WorkStatus.COMPLETED

    @property
    def failed(self) -> bool:
        return self.status is WorkStatus.FAILED

    @property
    def skipped(self) -> bool:
        return self.status is WorkStatus.SKIPPED


@dataclass(frozen=True)
class WorkOutcome:
    """Passed to a tree's ``on_after`` hook."""

    status: WorkStatus
    work_results: "ResultRegistry"
    value: Any = None
    error: Optional[BaseException] = None


@dataclass
class RunOutcome:
    """Returned from :func:`work_tree.run_tree`."""

    status: WorkStatus
    total_duration_ms: int
    work_results: "ResultRegistry"
    context: "WorkflowContext"
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is WorkStatus.COMPLETED
