"""Защита от повторной отправки одного и того же действия."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set

from core.logging.logger import logger
from shared.services.errors import DuplicateSubmissionError


class ActionGuard:
    """
    Пока действие с ключом выполняется, второе такое же отклоняется.

    Ключ задает вызывающий код, например "advance:create:<employee_id>"
    или "payroll:update:<payroll_id>".
    """

    def __init__(self):
        self._pending: Set[str] = set()
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        async with self._lock:
            if key in self._pending:
                logger.warning("Duplicate submission rejected", action_key=key)
                raise DuplicateSubmissionError(key)
            self._pending.add(key)
        try:
            yield
        finally:
            self._pending.discard(key)

    def is_pending(self, key: str) -> bool:
        return key in self._pending


action_guard = ActionGuard()
