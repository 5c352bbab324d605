from __future__ import annotations

import asyncio

import pytest

from arespec.scheduling import LoopScheduler


@pytest.mark.asyncio
async def test_loop_scheduler_uses_running_loop() -> None:
    scheduler = LoopScheduler()
    assert scheduler.loop is asyncio.get_running_loop()


@pytest.mark.asyncio
async def test_loop_scheduler_now_is_loop_time() -> None:
    scheduler = LoopScheduler()
    before = asyncio.get_running_loop().time()
    now = scheduler.now()
    assert before <= now <= asyncio.get_running_loop().time()


@pytest.mark.asyncio
async def test_loop_scheduler_call_later() -> None:
    scheduler = LoopScheduler()
    fired = asyncio.Event()
    scheduler.call_later(0.01, fired.set)
    await asyncio.wait_for(fired.wait(), timeout=1.0)
    assert fired.is_set()


@pytest.mark.asyncio
async def test_loop_scheduler_cancel() -> None:
    scheduler = LoopScheduler()
    calls = []
    handle = scheduler.call_later(0.01, lambda: calls.append(1))
    handle.cancel()
    await asyncio.sleep(0.05)
    assert calls == []


def test_loop_scheduler_without_running_loop() -> None:
    with pytest.raises(RuntimeError):
        LoopScheduler()


def test_loop_scheduler_explicit_loop() -> None:
    loop = asyncio.new_event_loop()
    try:
        assert LoopScheduler(loop).loop is loop
    finally:
        loop.close()
