"""Work and tree definitions consumed by the executors."""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Iterable, Iterator, Mapping, Optional, Tuple, Union

from .errors import InvalidWorkError, SealedTreeError
from .models import RetryConfig, RetryPolicy, TimeoutConfig, TimeoutPolicy, normalize_retry, normalize_timeout

if TYPE_CHECKING:  # pragma: no cover
    from .config import EngineSettings
    from .models import RunOutcome


class NodeKind(str, Enum):
    LEAF = "leaf"
    TREE = "tree"


class StepKind(str, Enum):
    SERIAL = "serial"
    PARALLEL = "parallel"


@dataclass(frozen=True, init=False)
class Work:
    """A named leaf unit. Only ``name`` and ``execute`` are required."""

    kind: ClassVar[NodeKind] = NodeKind.LEAF

    name: str
    execute: Callable[..., Any]
    should_run: Optional[Callable[..., Any]] = None
    on_error: Optional[Callable[..., Any]] = None
    on_skipped: Optional[Callable[..., Any]] = None
    silence_error: bool = False
    retry: Optional[RetryPolicy] = None
    timeout: Optional[TimeoutPolicy] = None

    def __init__(
        self,
        name: str,
        execute: Callable[..., Any],
        *,
        should_run: Optional[Callable[..., Any]] = None,
        on_error: Optional[Callable[..., Any]] = None,
        on_skipped: Optional[Callable[..., Any]] = None,
        silence_error: bool = False,
        retry: RetryConfig = None,
        timeout: TimeoutConfig = None,
    ) -> None:
        _require_name(name)
        if not callable(execute):
            raise InvalidWorkError(f"Work {name!r} requires a callable execute")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "execute", execute)
        object.__setattr__(self, "should_run", should_run)
        object.__setattr__(self, "on_error", on_error)
        object.__setattr__(self, "on_skipped", on_skipped)
        object.__setattr__(self, "silence_error", bool(silence_error))
        object.__setattr__(self, "retry", normalize_retry(retry))
        object.__setattr__(self, "timeout", normalize_timeout(timeout))


Node = Union[Work, "Tree"]
NodeInput = Union[Work, "Tree", Mapping[str, Any]]


@dataclass(frozen=True)
class SerialStep:
    node: Node
    kind: ClassVar[StepKind] = StepKind.SERIAL

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return (self.node,)


@dataclass(frozen=True)
class ParallelStep:
    nodes: Tuple[Node, ...]
    kind: ClassVar[StepKind] = StepKind.PARALLEL

    def __post_init__(self) -> None:
        if not self.nodes:
            raise InvalidWorkError("A parallel step needs at least one node")


Step = Union[SerialStep, ParallelStep]


def as_node(value: NodeInput) -> Node:
    """Accept a work, a tree, or a mapping of :class:`Work` fields."""

    if isinstance(value, (Work, Tree)):
        return value
    if isinstance(value, Mapping):
        return Work(**value)
    raise InvalidWorkError(f"Expected a Work, a Tree or a mapping, got {type(value).__name__}")


class Tree:
    """A named composite of ordered serial and parallel steps.

    Steps may be added until the tree is sealed. Trees nest: a tree can be a
    node inside another tree's step.
    """

    kind: ClassVar[NodeKind] = NodeKind.TREE

    def __init__(
        self,
        name: str,
        *,
        should_run: Optional[Callable[..., Any]] = None,
        on_before: Optional[Callable[..., Any]] = None,
        on_after: Optional[Callable[..., Any]] = None,
        on_error: Optional[Callable[..., Any]] = None,
        on_skipped: Optional[Callable[..., Any]] = None,
        silence_error: bool = False,
        timeout: TimeoutConfig = None,
        fail_fast: Optional[bool] = None,
    ) -> None:
        _require_name(name)
        self.name = name
        self.should_run = should_run
        self.on_before = on_before
        self.on_after = on_after
        self.on_error = on_error
        self.on_skipped = on_skipped
        self.silence_error = bool(silence_error)
        self.timeout = normalize_timeout(timeout)
        # None defers to EngineSettings.fail_fast_default at run time.
        self.fail_fast = fail_fast
        self._steps: list[Step] = []
        self._sealed = False

    def __repr__(self) -> str:
        state = "sealed" if self._sealed else "open"
        return f"Tree(name={self.name!r}, steps={len(self._steps)}, {state})"

    @property
    def steps(self) -> Tuple[Step, ...]:
        return tuple(self._steps)

    def is_sealed(self) -> bool:
        return self._sealed

    def add_serial(self, node: NodeInput) -> "Tree":
        self._ensure_open()
        self._steps.append(SerialStep(as_node(node)))
        return self

    def add_parallel(self, nodes: Iterable[NodeInput]) -> "Tree":
        self._ensure_open()
        self._steps.append(ParallelStep(tuple(as_node(node) for node in nodes)))
        return self

    def seal(self, final: Optional[NodeInput] = None) -> "Tree":
        """Seal the tree, optionally appending one last serial step first."""

        if self._sealed:
            raise SealedTreeError(f'Tree "{self.name}" is already sealed')
        if final is not None:
            self._steps.append(SerialStep(as_node(final)))
        self._sealed = True
        return self

    def set_on_after(self, callback: Optional[Callable[..., Any]]) -> "Tree":
        self.on_after = callback
        return self

    def iter_nodes(self) -> Iterator[Node]:
        """Yield every node below this tree, depth first."""

        for step in self._steps:
            for node in step.nodes:
                yield node
                if node.kind is NodeKind.TREE:
                    yield from node.iter_nodes()

    def duplicate_names(self) -> list[str]:
        """Names used more than once in this run, including the tree's own name."""

        counts = Counter([self.name, *(node.name for node in self.iter_nodes())])
        return sorted(name for name, count in counts.items() if count > 1)

    async def run(self, data: Any = None, *, settings: Optional["EngineSettings"] = None) -> "RunOutcome":
        from .execution import run_tree

        return await run_tree(self, data, settings=settings)

    def run_sync(self, data: Any = None, *, settings: Optional["EngineSettings"] = None) -> "RunOutcome":
        return asyncio.run(self.run(data, settings=settings))

    def _ensure_open(self) -> None:
        if self._sealed:
            raise SealedTreeError(f'Cannot add work to sealed tree "{self.name}"')


def tree(name: str, **options: Any) -> Tree:
    """Start building a tree: ``tree("checkout").add_serial(...).seal()``."""

    return Tree(name, **options)


def _require_name(name: Any) -> None:
    if not isinstance(name, str) or not name:
        raise InvalidWorkError("Work and tree names must be non-empty strings")
