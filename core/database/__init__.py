"""Модуль базы данных."""

from .session import (
    db_manager,
    get_async_session,
    DatabaseManager
)

__all__ = [
    "db_manager",
    "get_async_session",
    "DatabaseManager"
]
