import threading

import pytest

from work_tree import ResultNotFoundError, WorkResult, WorkStatus
from work_tree.execution import ResultRegistry


def _done(value=None, **kwargs) -> WorkResult:
    return WorkResult(WorkStatus.COMPLETED, value=value, **kwargs)


def test_get_unknown_name_fails_loudly():
    registry = ResultRegistry()
    with pytest.raises(ResultNotFoundError) as excinfo:
        registry.get("fetchProfile")
    assert "fetchProfile" in str(excinfo.value)
    assert "not found" in str(excinfo.value)
    assert isinstance(excinfo.value, KeyError)


def test_set_get_has_and_overwrite():
    registry = ResultRegistry()
    assert not registry.has("a")
    registry.set("a", _done(1))
    assert registry.has("a")
    assert "a" in registry
    assert registry.get("a").value == 1
    registry.set("a", _done(2))
    assert registry.value("a") == 2
    assert len(registry) == 1


def test_iteration_follows_insertion_order():
    registry = ResultRegistry()
    for name in ("c", "a", "b"):
        registry.set(name, _done(name))
    assert list(registry) == ["c", "a", "b"]
    assert [name for name, _ in registry.items()] == ["c", "a", "b"]
    assert list(registry.snapshot()) == ["c", "a", "b"]


def test_set_rejects_non_results():
    registry = ResultRegistry()
    with pytest.raises(TypeError):
        registry.set("a", {"status": "completed"})


def test_closed_registry_drops_writes():
    registry = ResultRegistry()
    registry.set("a", _done(1))
    registry.close()
    registry.set("a", WorkResult(WorkStatus.FAILED, error=RuntimeError("late")))
    registry.set("b", _done(2))
    assert registry.closed
    assert registry.get("a").status is WorkStatus.COMPLETED
    assert not registry.has("b")


def test_concurrent_threads_write_distinct_names():
    registry = ResultRegistry()

    def _writer(prefix: str) -> None:
        for index in range(200):
            registry.set(f"{prefix}-{index}", _done(index))

    threads = [threading.Thread(target=_writer, args=(f"t{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(registry) == 800
