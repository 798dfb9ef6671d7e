"""Run-scoped store of work results keyed by work name."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterator, List, Tuple

from ..errors import ResultNotFoundError
from ..models import WorkResult

LOGGER = logging.getLogger(__name__)


class ResultRegistry:
    """Ordered name -> :class:`WorkResult` map shared by every node of one run.

    Entries keep insertion order, so iteration follows the order in which
    nodes finished evaluating. Once the run returns the registry is closed and
    writes from operations that outlived the run are dropped.
    """

    def __init__(self) -> None:
        self._results: Dict[str, WorkResult] = {}
        self._lock = threading.RLock()
        self._closed = False

    def get(self, name: str) -> WorkResult:
        with self._lock:
            try:
                return self._results[name]
            except KeyError:
                raise ResultNotFoundError(name) from None

    def set(self, name: str, result: WorkResult) -> None:
        if not isinstance(result, WorkResult):
            raise TypeError(f"Expected WorkResult for {name!r}, got {type(result).__name__}")
        with self._lock:
            if self._closed:
                LOGGER.debug("Run already finished; dropping late result for %s (%s)", name, result.status.value)
                return
            self._results[name] = result

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._results

    def value(self, name: str) -> Any:
        """Shortcut for ``get(name).value``."""

        return self.get(name).value

    def names(self) -> List[str]:
        with self._lock:
            return list(self._results)

    def items(self) -> List[Tuple[str, WorkResult]]:
        with self._lock:
            return list(self._results.items())

    def snapshot(self) -> Dict[str, WorkResult]:
        with self._lock:
            return dict(self._results)

    def close(self) -> None:
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __repr__(self) -> str:
        return f"ResultRegistry({', '.join(f'{k}={v.status.value}' for k, v in self.items())})"
