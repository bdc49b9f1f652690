"""Очередь действий по ключу внутри процесса."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from core.logging.logger import logger


class KeyedLock:
    """
    Второе действие с тем же ключом ждет завершения первого.

    В отличие от ActionGuard ничего не отклоняет. Ключи захватываются
    в отсортированном порядке; блокировка удаляется, когда ее никто не ждет.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        ordered = sorted({key for key in keys if key})
        held = []
        try:
            for key in ordered:
                await self._acquire(key)
                held.append(key)
            yield
        finally:
            for key in reversed(held):
                self._release(key)

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    async def _acquire(self, key: str) -> None:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        if lock.locked():
            logger.debug("Waiting for keyed lock", lock_key=key)
        try:
            await lock.acquire()
        except BaseException:
            self._forget(key)
            raise

    def _release(self, key: str) -> None:
        self._locks[key].release()
        self._forget(key)

    def _forget(self, key: str) -> None:
        self._users[key] -= 1
        if not self._users[key]:
            del self._users[key]
            del self._locks[key]


# Пересчеты начислений одного сотрудника выполняются по очереди
employee_locks = KeyedLock()
