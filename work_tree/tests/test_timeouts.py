import asyncio

import pytest

from work_tree import TimeoutPolicy, WorkTimeoutError
from work_tree.execution import detached_count, guard, run_with_timeout


@pytest.mark.asyncio
async def test_no_budget_awaits_directly():
    async def op():
        return 3

    assert await run_with_timeout(op, name="w", timeout_ms=None) == 3
    assert await guard(op, None, name="w", context=None) == 3


@pytest.mark.asyncio
async def test_fast_operation_result_and_error_pass_through():
    async def ok():
        return "done"

    async def fails():
        raise ValueError("bad")

    assert await run_with_timeout(ok, name="w", timeout_ms=100) == "done"
    with pytest.raises(ValueError):
        await run_with_timeout(fails, name="w", timeout_ms=100)


@pytest.mark.asyncio
async def test_expiry_raises_and_does_not_cancel_the_operation():
    finished = asyncio.Event()
    expired = []

    async def slow():
        await asyncio.sleep(0.05)
        finished.set()
        return "late"

    with pytest.raises(WorkTimeoutError) as excinfo:
        await run_with_timeout(slow, name="fetch", timeout_ms=10, on_expire=lambda: expired.append(True))

    assert excinfo.value.work_name == "fetch"
    assert excinfo.value.timeout_ms == 10
    assert str(excinfo.value) == 'Work "fetch" timed out after 10ms'
    assert expired == [True]
    assert detached_count() >= 1
    await asyncio.wait_for(finished.wait(), timeout=1)


@pytest.mark.asyncio
async def test_on_timeout_hook_gets_context_and_errors_are_ignored():
    seen = []

    async def hook(ctx):
        seen.append(ctx)
        raise RuntimeError("hook failure")

    async def slow():
        await asyncio.sleep(0.2)

    policy = TimeoutPolicy(ms=5, on_timeout=hook)
    with pytest.raises(WorkTimeoutError):
        await guard(slow, policy, name="w", context="ctx")

    for _ in range(5):
        await asyncio.sleep(0)
    assert seen == ["ctx"]


@pytest.mark.asyncio
async def test_outer_cancellation_cancels_the_raced_operation():
    cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(1)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    task = asyncio.ensure_future(run_with_timeout(slow, name="w", timeout_ms=500))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.wait_for(cancelled.wait(), timeout=1)
