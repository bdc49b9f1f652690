#!/usr/bin/env python3
"""Скрипт создания таблиц базы данных."""

import asyncio
import sys
import os

# Добавляем корневую папку проекта в путь
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database.session import db_manager
from core.logging.logger import logger, setup_logging


async def main():
    """Основная функция."""
    setup_logging()
    await db_manager.initialize()
    try:
        await db_manager.create_tables()
        logger.info("Таблицы созданы")
    finally:
        await db_manager.close()


if __name__ == "__main__":
    asyncio.run(main())
