"""Per-node evaluation outcomes exchanged between the executors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

LOGGER = logging.getLogger(__name__)


@dataclass
class NodeOutcome:
    name: str
    value: Any = None
    error: Optional[BaseException] = None
    skipped: bool = False
    handled: bool = False

    @property
    def completed(self) -> bool:
        return self.error is None and not self.skipped and not self.handled


class Evaluation:
    """Tracks one in-flight evaluation so an abandoned body stops early.

    Abandoning an evaluation also abandons every evaluation nested in it.
    """

    __slots__ = ("attempts", "_abandoned", "_outer", "_settled")

    def __init__(self, outer: Optional["Evaluation"] = None) -> None:
        self.attempts = 0
        self._abandoned = False
        self._outer = outer
        self._settled = False

    @property
    def abandoned(self) -> bool:
        if self._abandoned:
            return True
        return self._outer is not None and self._outer.abandoned

    def abandon(self) -> None:
        self._abandoned = True

    @property
    def settled(self) -> bool:
        """True once the owning node has recorded its result."""

        return self._settled

    def settle(self) -> None:
        self._settled = True


def outlived(scope: Optional[Evaluation]) -> bool:
    """True when the enclosing evaluation was abandoned before this one finished."""

    return scope is not None and scope.abandoned


def discarded(name: str) -> NodeOutcome:
    LOGGER.debug("%s finished after its enclosing evaluation was abandoned; discarding its outcome", name)
    return NodeOutcome(name, handled=True)
