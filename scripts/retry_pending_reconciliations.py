#!/usr/bin/env python3
"""Скрипт повторного пересчета начислений для сотрудников с незавершенным пересчетом."""

import asyncio
import sys
import os

# Добавляем корневую папку проекта в путь
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database.session import db_manager, get_async_session
from core.logging.logger import logger, setup_logging
from shared.services.reconciliation_service import ReconciliationService
from shared.services.record_store import Stores


async def retry_pending_reconciliations() -> int:
    """Повторяет пересчет; возвращает число сотрудников, пересчет которых снова не удался."""
    async with get_async_session() as session:
        results = await ReconciliationService(Stores(session)).retry_pending()

    still_failing = [r for r in results if r.partial_failure]
    for result in still_failing:
        logger.warning(
            "Пересчет снова не выполнен",
            employee_id=result.employee_id,
            failed_payroll_ids=result.failed_payroll_ids,
        )
    logger.info("Повторный пересчет завершен", total=len(results), still_failing=len(still_failing))
    return len(still_failing)


async def main() -> int:
    """Основная функция."""
    setup_logging()
    try:
        return await retry_pending_reconciliations()
    finally:
        await db_manager.close()


if __name__ == "__main__":
    sys.exit(1 if asyncio.run(main()) else 0)
