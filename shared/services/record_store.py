"""Хранилище записей: единый async CRUD поверх AsyncSession."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging.logger import logger
from domain.entities.activity_log import ActivityLog
from domain.entities.advance import Advance
from domain.entities.employee import Employee
from domain.entities.expense import Expense
from domain.entities.payroll_entry import PayrollEntry
from domain.entities.pending_reconciliation import PendingReconciliation
from domain.entities.project import Project
from domain.entities.statement import Statement
from shared.services.errors import RecordNotFoundError, StoreError

T = TypeVar("T")


def _json_safe(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


class RecordStore(Generic[T]):
    """
    Коллекция записей одной сущности.

    Каждая операция записи коммитится сразу: вызывающий код получает
    управление только после подтверждения от БД. Ошибки SQLAlchemy
    откатываются и пробрасываются как StoreError.
    """

    def __init__(self, session: AsyncSession, model: Type[T], *, log_activity: bool = True):
        self.session = session
        self.model = model
        self.table = model.__tablename__
        self.log_activity = log_activity

    async def list(self, **filters: Any) -> List[T]:
        """Все записи, опционально с фильтром по равенству полей."""
        query = select(self.model)
        if filters:
            query = query.filter_by(**filters)
        # populate_existing: объекты из identity map перечитываются из БД
        query = query.order_by(self.model.created_at, self.model.id).execution_options(populate_existing=True)
        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Не удалось прочитать {self.table}: {e}", operation="list", table=self.table) from e

    async def get(self, record_id: Any) -> Optional[T]:
        if record_id is None:
            return None
        try:
            return await self.session.get(self.model, record_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Не удалось прочитать {self.table}: {e}", operation="get", table=self.table) from e

    async def require(self, record_id: Any) -> T:
        record = await self.get(record_id)
        if record is None:
            raise RecordNotFoundError(self.table, record_id)
        return record

    async def create(self, fields: Mapping[str, Any]) -> T:
        record = self.model(**fields)
        try:
            self.session.add(record)
            await self.session.flush()
            self._add_activity("create", record.id, fields)
            await self.session.commit()
            await self.session.refresh(record)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Store create failed", table=self.table, error=str(e))
            raise StoreError(f"Не удалось создать запись в {self.table}: {e}", operation="create", table=self.table) from e

        logger.debug("Record created", table=self.table, row_id=record.id)
        return record

    async def update(self, record_id: Any, fields: Mapping[str, Any]) -> T:
        record = await self.require(record_id)
        try:
            for key, value in fields.items():
                setattr(record, key, value)
            self._add_activity("update", record_id, fields)
            await self.session.commit()
            await self.session.refresh(record)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Store update failed", table=self.table, row_id=record_id, error=str(e))
            raise StoreError(f"Не удалось обновить запись в {self.table}: {e}", operation="update", table=self.table) from e

        logger.debug("Record updated", table=self.table, row_id=record_id, fields=list(fields))
        return record

    async def delete(self, record_id: Any) -> bool:
        record = await self.require(record_id)
        try:
            await self.session.delete(record)
            self._add_activity("delete", record_id, None)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Store delete failed", table=self.table, row_id=record_id, error=str(e))
            raise StoreError(f"Не удалось удалить запись из {self.table}: {e}", operation="delete", table=self.table) from e

        logger.debug("Record deleted", table=self.table, row_id=record_id)
        return True

    def _add_activity(self, action: str, row_id: Any, fields: Optional[Mapping[str, Any]]) -> None:
        if not self.log_activity:
            return
        self.session.add(
            ActivityLog(
                table_name=self.table,
                action=action,
                row_id=str(row_id),
                details=_json_safe(dict(fields)) if fields else None,
            )
        )


class Stores:
    """Все коллекции приложения поверх одной сессии."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees: RecordStore[Employee] = RecordStore(session, Employee)
        self.projects: RecordStore[Project] = RecordStore(session, Project)
        self.advances: RecordStore[Advance] = RecordStore(session, Advance)
        self.payrolls: RecordStore[PayrollEntry] = RecordStore(session, PayrollEntry)
        self.expenses: RecordStore[Expense] = RecordStore(session, Expense)
        self.statements: RecordStore[Statement] = RecordStore(session, Statement)
        self.pending_reconciliations: RecordStore[PendingReconciliation] = RecordStore(
            session, PendingReconciliation, log_activity=False
        )
        self.activity_logs: RecordStore[ActivityLog] = RecordStore(session, ActivityLog, log_activity=False)

    async def recent_activity(self, limit: int = 10) -> List[ActivityLog]:
        query = select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(limit)
        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Не удалось прочитать activity_logs: {e}", operation="list", table="activity_logs") from e

    async def reference_counts(self, **counts_by: Dict[str, Any]) -> Dict[str, int]:
        """
        Сколько записей ссылается на запись.

        Пример: reference_counts(advances={"employee_id": eid}, payrolls={"employee_id": eid})
        """
        result: Dict[str, int] = {}
        for store_name, filters in counts_by.items():
            store: RecordStore = getattr(self, store_name)
            records = await store.list(**filters)
            if records:
                result[store_name] = len(records)
        return result
