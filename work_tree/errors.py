"""Error types raised by the work-tree engine."""

from __future__ import annotations

from typing import Any


class WorkTreeError(Exception):
    """Base class for every error raised by the library."""


class WorkTimeoutError(WorkTreeError):
    """Raised when a work, an attempt, or a tree exceeds its time budget."""

    def __init__(self, work_name: str, timeout_ms: float) -> None:
        super().__init__(f'Work "{work_name}" timed out after {_format_ms(timeout_ms)}ms')
        self.work_name = work_name
        self.timeout_ms = timeout_ms


class ResultNotFoundError(WorkTreeError, KeyError):
    """Raised when a result is requested before the work has executed."""

    def __init__(self, work_name: str) -> None:
        super().__init__(f'Work result "{work_name}" not found. This work may not have executed yet.')
        self.work_name = work_name

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class SealedTreeError(WorkTreeError):
    """Raised on structural changes to a sealed tree."""


class InvalidWorkError(WorkTreeError, ValueError):
    """Raised when a work or tree definition is malformed."""


def ensure_exception(value: Any) -> BaseException:
    """Return ``value`` if it is an exception, otherwise wrap its string form."""

    if isinstance(value, BaseException):
        return value
    return WorkTreeError(str(value))


def _format_ms(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "InvalidWorkError",
    "ResultNotFoundError",
    "SealedTreeError",
    "WorkTimeoutError",
    "WorkTreeError",
    "ensure_exception",
]
