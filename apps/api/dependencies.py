"""
Зависимости FastAPI: сессия, хранилища, защита от повторной отправки
"""
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database.session import get_async_session
from core.utils.action_guard import ActionGuard, action_guard
from shared.services.importers.ocr import OCRService
from shared.services.record_store import Stores


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Сессия на время запроса."""
    async with get_async_session() as session:
        yield session


async def get_stores(session: AsyncSession = Depends(get_session)) -> Stores:
    return Stores(session)


def get_action_guard() -> ActionGuard:
    return action_guard


def get_ocr_service() -> OCRService:
    return OCRService()
