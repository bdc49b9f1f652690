"""Тесты очереди действий по ключу."""

import asyncio

import pytest

from core.utils.keyed_lock import KeyedLock


@pytest.mark.asyncio
async def test_same_key_runs_one_after_another():
    locks = KeyedLock()
    order = []
    started = asyncio.Event()
    release = asyncio.Event()

    async def first():
        async with locks.hold("e1"):
            order.append("first:start")
            started.set()
            await release.wait()
            order.append("first:end")

    async def second():
        async with locks.hold("e1"):
            order.append("second")

    task_first = asyncio.create_task(first())
    await started.wait()
    task_second = asyncio.create_task(second())
    for _ in range(3):
        await asyncio.sleep(0)
    assert order == ["first:start"]

    release.set()
    await asyncio.gather(task_first, task_second)
    assert order == ["first:start", "first:end", "second"]


@pytest.mark.asyncio
async def test_different_keys_do_not_wait():
    locks = KeyedLock()
    async with locks.hold("e1"):
        async with locks.hold("e2"):
            assert locks.is_locked("e1")
            assert locks.is_locked("e2")


@pytest.mark.asyncio
async def test_repeated_and_empty_keys_are_ignored():
    locks = KeyedLock()
    async with locks.hold("e2", "e1", "e2", None):
        assert locks.is_locked("e1")
        assert locks.is_locked("e2")
    assert not locks.is_locked("e1")
    assert not locks.is_locked("e2")


@pytest.mark.asyncio
async def test_lock_released_after_error():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("e1"):
            raise RuntimeError("boom")

    assert not locks.is_locked("e1")
    assert locks._locks == {}
    async with locks.hold("e1"):
        assert locks.is_locked("e1")
