"""Сервис для работы с начислениями."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from core.logging.logger import logger
from domain.entities.employee import Employee
from domain.entities.payroll_entry import PayrollEntry, PayrollStatus
from domain.entities.project import Project
from shared.services.errors import ReferenceNotFoundError, StoreError
from shared.services.payroll_calculator import gross_pay, net_pay, resolve_rate
from shared.services.reconciliation_service import ReconciliationService
from shared.services.record_store import Stores
from shared.services.validators import (
    clean_text,
    first_of_month,
    is_blank,
    parse_choice,
    parse_decimal,
    require_fields,
)

# Поля, изменение которых требует пересчета gross/net
_RECALC_FIELDS = ("hours_worked", "rate", "employee_id")


@dataclass
class PayrollFilter:
    project: Optional[str] = None  # id или название проекта
    month: Optional[date] = None
    status: Optional[str] = None
    nationality: Optional[str] = None
    search: Optional[str] = None


@dataclass
class PayrollRow:
    """Строка таблицы начислений с данными сотрудника и проекта."""

    id: str
    employee_id: str
    employee_name: str
    employee_code: str
    role: str
    nationality: str
    date_of_join: Optional[date]
    project_id: Optional[str]
    project_name: str
    month: date
    hours_worked: Decimal
    rate: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    status: str

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class BulkResult:
    succeeded: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


class PayrollService:
    """Сервис для учета начислений."""

    def __init__(self, stores: Stores, reconciliation: Optional[ReconciliationService] = None):
        self.stores = stores
        self.reconciliation = reconciliation or ReconciliationService(stores)

    # ================== PAYROLL ENTRIES ==================

    async def list_payrolls(self, employee_id: Optional[str] = None) -> List[PayrollEntry]:
        filters = {"employee_id": employee_id} if employee_id else {}
        return await self.stores.payrolls.list(**filters)

    async def get_payroll(self, payroll_id: str) -> PayrollEntry:
        return await self.stores.payrolls.require(payroll_id)

    async def create_payroll(self, data: Mapping[str, Any]) -> PayrollEntry:
        """
        Создать начисление.

        Args:
            data: employee_id, month, hours_worked; опционально project_id,
                rate (иначе ставка проекта для специальности), status

        Returns:
            Созданная запись; net_pay учитывает текущие авансы сотрудника
        """
        require_fields(data, "employee_id", "month")
        employee = await self._require_employee(data["employee_id"])
        project = await self._optional_project(data.get("project_id"))

        month = first_of_month(data["month"])
        hours = parse_decimal(data.get("hours_worked") or 0, "hours_worked")
        explicit_rate = None if is_blank(data.get("rate")) else parse_decimal(data["rate"], "rate")
        rate = resolve_rate(explicit_rate, project, employee.role)

        gross = gross_pay(hours, rate)
        status = parse_choice(data.get("status"), "status", PayrollStatus.ALL, default=PayrollStatus.UNPAID)

        existing = await self.stores.payrolls.list(employee_id=employee.id, month=month)
        if existing:
            logger.warning(
                "Начисление за месяц уже существует",
                employee_id=employee.id,
                month=month.isoformat(),
                existing=len(existing),
            )

        async with self.reconciliation.locks.hold(employee.id):
            advance_total = await self.reconciliation.ledger.current_total(employee.id)
            entry = await self.stores.payrolls.create({
                "employee_id": employee.id,
                "project_id": project.id if project else None,
                "month": month,
                "hours_worked": hours,
                "rate": rate,
                "gross_pay": gross,
                "net_pay": net_pay(gross, advance_total),
                "status": status,
            })
        logger.info(
            "Начисление создано",
            payroll_id=entry.id,
            employee_id=employee.id,
            gross_pay=float(gross),
            net_pay=float(entry.net_pay),
        )
        return entry

    async def update_payroll(self, payroll_id: str, data: Mapping[str, Any]) -> PayrollEntry:
        """Правка начисления; часы, ставка или сотрудник запускают пересчет."""
        payroll = await self.stores.payrolls.require(payroll_id)
        changes: Dict[str, Any] = {}

        if "employee_id" in data:
            employee = await self._require_employee(data["employee_id"])
            changes["employee_id"] = employee.id
        if "project_id" in data:
            project = await self._optional_project(data.get("project_id"))
            changes["project_id"] = project.id if project else None
        if "month" in data:
            changes["month"] = first_of_month(data["month"])
        if "hours_worked" in data:
            changes["hours_worked"] = parse_decimal(data["hours_worked"], "hours_worked")
        if "rate" in data:
            changes["rate"] = parse_decimal(data["rate"], "rate")
        if "status" in data:
            changes["status"] = parse_choice(data["status"], "status", PayrollStatus.ALL)

        if any(name in changes for name in _RECALC_FIELDS):
            return await self.reconciliation.recompute_payroll(payroll, changes)

        entry = await self.stores.payrolls.update(payroll_id, changes)
        logger.info("Начисление обновлено", payroll_id=payroll_id, fields=list(changes))
        return entry

    async def delete_payroll(self, payroll_id: str) -> bool:
        await self.stores.payrolls.delete(payroll_id)
        logger.info("Начисление удалено", payroll_id=payroll_id)
        return True

    async def set_status(self, payroll_id: str, status: str) -> PayrollEntry:
        return await self.stores.payrolls.update(
            payroll_id, {"status": parse_choice(status, "status", PayrollStatus.ALL)}
        )

    async def set_status_for_project(self, project_id: str, status: str) -> BulkResult:
        """Массовая смена статуса всех начислений проекта."""
        new_status = parse_choice(status, "status", PayrollStatus.ALL)
        await self.stores.projects.require(project_id)

        result = BulkResult()
        payroll_ids = [p.id for p in await self.stores.payrolls.list(project_id=project_id)]
        for payroll_id in payroll_ids:
            try:
                await self.stores.payrolls.update(payroll_id, {"status": new_status})
                result.succeeded += 1
            except StoreError as e:
                result.failed += 1
                result.errors.append(f"{payroll_id}: {e}")

        logger.info(
            "Статус начислений проекта обновлен",
            project_id=project_id,
            status=new_status,
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result

    # ================== TABLE ROWS ==================

    async def list_rows(self, filters: Optional[PayrollFilter] = None) -> List[PayrollRow]:
        """Начисления с данными сотрудника и проекта, отфильтрованные как в таблице."""
        employees = {e.id: e for e in await self.stores.employees.list()}
        projects = {p.id: p for p in await self.stores.projects.list()}
        payrolls = await self.stores.payrolls.list()

        rows = [self._build_row(p, employees.get(p.employee_id), projects.get(p.project_id)) for p in payrolls]
        return [row for row in rows if self._matches(row, filters or PayrollFilter())]

    @staticmethod
    def _build_row(payroll: PayrollEntry, employee: Optional[Employee], project: Optional[Project]) -> PayrollRow:
        return PayrollRow(
            id=payroll.id,
            employee_id=payroll.employee_id,
            employee_name=employee.name if employee else "",
            employee_code=employee.employee_code if employee else "",
            role=(employee.role or "") if employee else "",
            nationality=(employee.nationality or "") if employee else "",
            date_of_join=employee.date_of_join if employee else None,
            project_id=payroll.project_id,
            project_name=project.name if project else "",
            month=payroll.month,
            hours_worked=payroll.hours_worked,
            rate=payroll.rate,
            gross_pay=payroll.gross_pay,
            net_pay=payroll.net_pay,
            status=payroll.status or PayrollStatus.UNPAID,
        )

    @staticmethod
    def _matches(row: PayrollRow, filters: PayrollFilter) -> bool:
        if filters.project and filters.project not in (row.project_id, row.project_name):
            return False
        if filters.month and row.month != filters.month.replace(day=1):
            return False
        if filters.status and row.status != filters.status:
            return False
        if filters.nationality and row.nationality != filters.nationality:
            return False
        if filters.search:
            needle = filters.search.strip()
            if needle.lower() not in row.employee_name.lower() and needle not in row.employee_code:
                return False
        return True

    async def _require_employee(self, employee_id: Any) -> Employee:
        employee_id = clean_text(employee_id)
        employee = await self.stores.employees.get(employee_id)
        if employee is None:
            raise ReferenceNotFoundError("Сотрудник", employee_id, field="employee_id")
        return employee

    async def _optional_project(self, project_id: Any) -> Optional[Project]:
        project_id = clean_text(project_id)
        if not project_id:
            return None
        project = await self.stores.projects.get(project_id)
        if project is None:
            raise ReferenceNotFoundError("Проект", project_id, field="project_id")
        return project


def ensure_month(value: Any) -> Optional[date]:
    """Фильтр месяца из query-параметра."""
    if is_blank(value):
        return None
    return first_of_month(value)
