"""Context shared by every callback of one run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .registry import ResultRegistry


@dataclass
class WorkflowContext:
    data: Any
    work_results: ResultRegistry
